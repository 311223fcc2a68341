from __future__ import annotations

import logging
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class ConfirmationGate:
    """Yes/no gate in front of destructive actions.

    Only one request is pending at a time; a new request replaces the
    previous one and its action is dropped.
    """

    def __init__(self) -> None:
        self._message: Optional[str] = None
        self._action: Optional[Callable[[], None]] = None

    @property
    def pending(self) -> bool:
        return self._action is not None

    @property
    def message(self) -> Optional[str]:
        return self._message

    def request(self, message: str, on_confirm: Callable[[], None]) -> None:
        if self._action is not None:
            logger.debug("replacing pending confirmation %r", self._message)
        self._message = message
        self._action = on_confirm

    def confirm(self) -> None:
        action = self._action
        self._reset()
        if action is not None:
            action()

    def cancel(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self._message = None
        self._action = None
