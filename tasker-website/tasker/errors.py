"""Error types and the single-slot user-visible error message."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional


logger = logging.getLogger(__name__)


class TaskerError(Exception):
    """Base class for app errors."""


class ValidationError(TaskerError):
    """Input rejected locally before any store call.

    The message is shown to the user as-is.
    """


class StoreError(TaskerError):
    """A document store operation failed (network, permission, unknown)."""

    def __init__(self, operation: str, message: str = "") -> None:
        self.operation = operation
        super().__init__(f"{operation}: {message}" if message else operation)


class NotFoundError(StoreError):
    pass


class AuthError(TaskerError):
    """The identity provider rejected the session."""


class ErrorSlot:
    """Holds at most one user-visible error message.

    A new message replaces the old one. Listeners are called with the new
    value (``None`` when cleared).
    """

    def __init__(self) -> None:
        self._message: Optional[str] = None
        self._listeners: List[Callable[[Optional[str]], None]] = []
        self._lock = threading.Lock()

    @property
    def message(self) -> Optional[str]:
        return self._message

    def set(self, message: str) -> None:
        with self._lock:
            self._message = message
        self._notify(message)

    def clear(self) -> None:
        with self._lock:
            if self._message is None:
                return
            self._message = None
        self._notify(None)

    def on_change(self, callback: Callable[[Optional[str]], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def _notify(self, value: Optional[str]) -> None:
        for cb in list(self._listeners):
            cb(value)


class OperationOutcome:
    """Result flag filled in by :func:`guard`."""

    def __init__(self) -> None:
        self.ok = False


@contextmanager
def guard(errors: ErrorSlot, failure_message: str) -> Iterator[OperationOutcome]:
    """Run a store operation the way every view expects.

    - ValidationError: its message goes to the error slot.
    - StoreError: logged with traceback; ``failure_message`` goes to the slot.
    - Success: the slot is cleared.

    The operation is abandoned in both error cases; nothing is retried.
    """
    outcome = OperationOutcome()
    try:
        yield outcome
    except ValidationError as exc:
        errors.set(str(exc))
        return
    except StoreError:
        logger.exception(failure_message)
        errors.set(failure_message)
        return
    outcome.ok = True
    errors.clear()
