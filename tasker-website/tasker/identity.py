"""Session identity: who is using the app right now.

The identity provider is a collaborator. ``LocalIdentityProvider`` stands in
for a hosted one: sessions are anonymous unless the hosting environment
passes a custom token (``<user_id>.<hmac-sha256 hex>``) signed with
``TASKER_AUTH_SECRET``.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional

from .errors import AuthError, ErrorSlot


logger = logging.getLogger(__name__)

IdentityCallback = Callable[[Optional["Identity"]], None]


@dataclass(frozen=True)
class Identity:
    user_id: str
    anonymous: bool = True


class InvalidTokenError(AuthError):
    """Token failed verification; retrying with the same token cannot help."""


def _sign(secret: str, user_id: str) -> str:
    return hmac.new(secret.encode("utf-8"), user_id.encode("utf-8"), hashlib.sha256).hexdigest()


def issue_token(secret: str, user_id: str) -> str:
    """Create a custom session token for ``user_id``."""
    if not user_id or "." in user_id:
        raise ValueError("user_id must be non-empty and must not contain '.'")
    return f"{user_id}.{_sign(secret, user_id)}"


class LocalIdentityProvider:
    def __init__(self, secret: str) -> None:
        self._secret = secret
        self._current: Optional[Identity] = None
        self._listeners: List[IdentityCallback] = []
        self._lock = threading.Lock()

    @property
    def current(self) -> Optional[Identity]:
        return self._current

    def establish_session(self, token: Optional[str] = None) -> Identity:
        if token:
            identity = Identity(user_id=self._verify(token), anonymous=False)
        else:
            identity = Identity(user_id=uuid.uuid4().hex, anonymous=True)
        self._set(identity)
        return identity

    def sign_out(self) -> None:
        self._set(None)

    def on_identity_change(self, callback: IdentityCallback) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return _unsubscribe

    def _verify(self, token: str) -> str:
        user_id, sep, signature = token.strip().rpartition(".")
        if not sep or not user_id or not signature:
            raise InvalidTokenError("Malformed session token")
        if not hmac.compare_digest(_sign(self._secret, user_id), signature):
            raise InvalidTokenError("Session token signature mismatch")
        return user_id

    def _set(self, identity: Optional[Identity]) -> None:
        with self._lock:
            self._current = identity
            listeners = list(self._listeners)
        for cb in listeners:
            cb(identity)


class SessionManager:
    """Establishes the session identity and tells the app when it is ready.

    No view may query the store until ``ready`` is True. Establishment is
    retried up to ``max_attempts`` times with exponential backoff; after
    the last failure the error is shown and ``retry()`` starts over.
    """

    def __init__(
        self,
        provider: LocalIdentityProvider,
        errors: ErrorSlot,
        *,
        token: Optional[str] = None,
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._provider = provider
        self._errors = errors
        self._token = token
        self._max_attempts = max(1, int(max_attempts))
        self._backoff_seconds = max(0.0, float(backoff_seconds))
        self._sleep = sleep

        self.identity: Optional[Identity] = None
        self.ready = False
        self.error: Optional[str] = None
        self.attempts = 0
        self._listeners: List[IdentityCallback] = []
        self._unsubscribe_provider = provider.on_identity_change(self._on_provider_change)

    @property
    def user_id(self) -> Optional[str]:
        return self.identity.user_id if self.identity else None

    def start(self) -> bool:
        if self.ready:
            return True
        return self._establish(self._token)

    def retry(self) -> bool:
        self.error = None
        return self._establish(self._token)

    def sign_out(self) -> bool:
        """Drop the current identity and continue with a fresh anonymous one."""
        self._provider.sign_out()
        return self._establish(None)

    def on_change(self, callback: IdentityCallback) -> Callable[[], None]:
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def close(self) -> None:
        self._unsubscribe_provider()

    def _establish(self, token: Optional[str]) -> bool:
        delay = self._backoff_seconds
        self.attempts = 0
        last_error: Optional[AuthError] = None
        for attempt in range(1, self._max_attempts + 1):
            self.attempts = attempt
            try:
                self._provider.establish_session(token)
            except InvalidTokenError as exc:
                last_error = exc
                logger.error("session token rejected: %s", exc)
                break
            except AuthError as exc:
                last_error = exc
                logger.warning("sign-in attempt %d/%d failed: %s", attempt, self._max_attempts, exc)
                if attempt < self._max_attempts:
                    self._sleep(delay)
                    delay *= 2
                continue
            self.error = None
            self._errors.clear()
            logger.info("session established for %s", self.user_id)
            return True

        self.ready = False
        self.error = "Sign-in failed. Please try again."
        logger.error("could not establish a session: %s", last_error)
        self._errors.set(self.error)
        return False

    def _on_provider_change(self, identity: Optional[Identity]) -> None:
        self.identity = identity
        self.ready = identity is not None
        for cb in list(self._listeners):
            cb(identity)
