from __future__ import annotations

import logging
import threading
from typing import Callable


logger = logging.getLogger(__name__)


class VisibilityController:
    """Track page visibility and force a pause when the page goes hidden.

    Becoming visible again does not resume anything; a session paused by a
    hidden tab stays paused until someone turns it back on.
    """

    def __init__(self, on_hidden: Callable[[], None]) -> None:
        self._on_hidden = on_hidden
        self._lock = threading.Lock()
        self._visible = True

    @property
    def visible(self) -> bool:
        return self._visible

    def update(self, hidden: bool) -> None:
        with self._lock:
            was_visible = self._visible
            self._visible = not hidden
        if was_visible and hidden:
            logger.info("page hidden; pausing simulation")
            self._on_hidden()
        elif not was_visible and not hidden:
            logger.debug("page visible again")
