from __future__ import annotations

import logging
from typing import Callable

from nhs_analytics.config import DEFAULT_TRUST_CODE

LOGGER = logging.getLogger(__name__)

Listener = Callable[[str], None]


class TrustSelection:
    """The application's current trust, with synchronous change notification."""

    def __init__(self, initial: str = DEFAULT_TRUST_CODE) -> None:
        self._current = initial
        self._listeners: list[Listener] = []

    @property
    def current(self) -> str:
        return self._current

    def set(self, trust_code: str) -> None:
        if trust_code == self._current:
            return
        self._current = trust_code
        LOGGER.debug("Selected trust changed to %s", trust_code)
        for listener in list(self._listeners):
            listener(trust_code)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
