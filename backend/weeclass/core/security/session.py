# weeclass/core/security/session.py
"""
Admin sign-in/sign-out and the gate in front of the review dashboard.

AuthService plays the part of the identity provider: it checks the configured
admin account, issues signed session tokens and tells subscribers when the
session state changes. AuthGate listens to it and decides, per request,
whether to grant access, redirect to the login page, or report that the
session state is not known yet.
"""

import enum
import hmac
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from weeclass.core.config import Settings
from weeclass.core.constants import ADMIN_LOGIN_PATH
from weeclass.core.errors import AuthError
from weeclass.core.security.jwt import sign_session_token, verify_token

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    UNKNOWN = "unknown"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class SessionEvent:
    state: SessionState
    subject: Optional[str] = None
    jti: Optional[str] = None


@dataclass(frozen=True)
class Session:
    token: str
    subject: str
    jti: str
    expires_at: datetime


Listener = Callable[[SessionEvent], None]


class AuthService:
    def __init__(self, settings: Settings, demo_mode: bool = False):
        self._secret = settings.SESSION_JWT_SECRET
        self._ttl = timedelta(hours=settings.SESSION_TTL_HOURS)
        self._accounts: Dict[str, str] = {}
        if demo_mode:
            self._accounts[settings.DEMO_ADMIN_EMAIL] = settings.DEMO_PASSWORD
        elif settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
            self._accounts[settings.ADMIN_EMAIL] = settings.ADMIN_PASSWORD
        else:
            logger.warning("No admin account configured; sign-in is disabled")

        self._lock = threading.Lock()
        self._revoked: set[str] = set()
        self._listeners: List[Listener] = []
        self._ready = False

    # -----------------------------
    # lifecycle (driven by BackendClient)
    # -----------------------------
    def start(self) -> None:
        self._ready = True
        self._emit(SessionEvent(SessionState.ANONYMOUS))

    def stop(self) -> None:
        self._ready = False
        self._emit(SessionEvent(SessionState.UNKNOWN))

    # -----------------------------
    # subscriptions
    # -----------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; it is called right away with the current service state."""
        with self._lock:
            self._listeners.append(listener)
        listener(SessionEvent(SessionState.ANONYMOUS if self._ready else SessionState.UNKNOWN))

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: SessionEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(event)

    # -----------------------------
    # sign in / out
    # -----------------------------
    def sign_in(self, email: str, password: str) -> Session:
        expected = self._accounts.get((email or "").strip())
        if expected is None or not hmac.compare_digest(expected.encode(), (password or "").encode()):
            logger.info("admin sign-in rejected for %s", email)
            raise AuthError("invalid credentials")

        token, jti = sign_session_token(self._secret, email.strip(), self._ttl)
        session = Session(
            token=token,
            subject=email.strip(),
            jti=jti,
            expires_at=datetime.now(timezone.utc) + self._ttl,
        )
        self._emit(SessionEvent(SessionState.AUTHENTICATED, session.subject, jti))
        return session

    def sign_out(self, token: str) -> None:
        try:
            payload = verify_token(token, self._secret, "session")
        except AuthError:
            return
        with self._lock:
            self._revoked.add(payload["jti"])
        self._emit(SessionEvent(SessionState.ANONYMOUS, payload.get("sub"), payload["jti"]))

    def current(self, token: Optional[str]) -> Optional[dict]:
        """Payload of a live session token, or None."""
        if not token:
            return None
        try:
            payload = verify_token(token, self._secret, "session")
        except AuthError:
            return None
        with self._lock:
            if payload.get("jti") in self._revoked:
                return None
        return payload


class GateDecision(str, enum.Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    GRANTED = "granted"


class AuthGate:
    redirect_to = ADMIN_LOGIN_PATH

    def __init__(self, auth: AuthService):
        self._auth = auth
        self._state = SessionState.UNKNOWN
        self._unsubscribe = auth.subscribe(self._on_event)

    def _on_event(self, event: SessionEvent) -> None:
        if event.state == SessionState.UNKNOWN:
            self._state = SessionState.UNKNOWN
        elif self._state == SessionState.UNKNOWN:
            self._state = SessionState.ANONYMOUS

    def decide(self, token: Optional[str]) -> GateDecision:
        if self._state == SessionState.UNKNOWN:
            return GateDecision.LOADING
        if self._auth.current(token) is None:
            return GateDecision.REDIRECT
        return GateDecision.GRANTED

    def close(self) -> None:
        self._unsubscribe()
