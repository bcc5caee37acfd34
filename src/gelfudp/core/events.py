"""Error notification channel shared by a client and its subscribers."""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, List

from .errors import GELFError

__all__ = ["ErrorCallback", "ErrorChannel"]

logger = logging.getLogger("gelfudp")

ErrorCallback = Callable[[GELFError], None]


class ErrorChannel:
    """Fan out send failures to subscribed callbacks.

    Errors are delivered on the thread that publishes them, which for a
    :class:`~gelfudp.transport.client.GraylogClient` is its event loop. The
    most recent errors are kept in :attr:`history`. With no subscriber the
    error is logged at WARNING level instead.
    """

    def __init__(self, *, history_size: int = 100) -> None:
        self._subscribers: List[ErrorCallback] = []
        self.history: Deque[GELFError] = deque(maxlen=history_size)

    def subscribe(self, callback: ErrorCallback) -> Callable[[], None]:
        """Register ``callback`` and return a function that removes it."""

        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, error: GELFError) -> None:
        self.history.append(error)
        if not self._subscribers:
            logger.warning("gelfudp dropped a message: %s: %s", type(error).__name__, error)
            return
        for callback in list(self._subscribers):
            try:
                callback(error)
            except Exception:
                logger.exception("gelfudp error subscriber %r failed", callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
