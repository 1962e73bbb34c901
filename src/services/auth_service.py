"""
Auth Service Module

Sign-in state of the user. The token itself lives in the SessionStore.
"""

from typing import Optional
import logging
import threading

from core.errors import MusicClientError, describe_error
from core.event_bus import EventBus, EventType
from core.session_store import SessionStore
from models.user import User
from services.api.auth_api import AuthApi

logger = logging.getLogger(__name__)


class AuthService:
    """
    Auth Service

    Example:
        auth = AuthService(AuthApi(client), session_store)
        auth.check_auth_status()
        if not auth.is_authenticated:
            auth.login("me@example.com", "secret")
    """

    def __init__(self, auth_api: AuthApi, session_store: SessionStore, event_bus: Optional[EventBus] = None):
        self._api = auth_api
        self._store = session_store
        self._event_bus = event_bus or EventBus()
        self._lock = threading.RLock()

        self._user: Optional[User] = None
        self._is_loading = False
        self._error: Optional[str] = None

        self._subscription = self._event_bus.subscribe(EventType.SESSION_EXPIRED, self._on_session_expired)

    @property
    def current_user(self) -> Optional[User]:
        with self._lock:
            return self._user

    @property
    def is_authenticated(self) -> bool:
        with self._lock:
            return self._user is not None and self._store.has_token()

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    def clear_error(self) -> None:
        self._error = None

    def _set_user(self, user: Optional[User]) -> None:
        with self._lock:
            changed = user != self._user
            self._user = user
        if changed:
            self._event_bus.publish_sync(EventType.AUTH_CHANGED, user)

    def login(self, email: str, password: str) -> bool:
        """Sign in and store the session token"""
        self._is_loading = True
        try:
            session = self._api.login(email, password)
        except MusicClientError as e:
            self._error = describe_error(e)
            logger.warning("Login failed for %s: %s", email, e)
            return False
        finally:
            self._is_loading = False

        self._store.save_token(session.session_token)
        self._error = None
        logger.info("Signed in as %s", session.user.username or session.user.email)
        self._set_user(session.user)
        return True

    def register(self, email: str, username: str, password: str) -> bool:
        """Create an account; the backend signs the new user in."""
        self._is_loading = True
        try:
            session = self._api.register(email, username, password)
        except MusicClientError as e:
            self._error = describe_error(e)
            logger.warning("Registration failed for %s: %s", email, e)
            return False
        finally:
            self._is_loading = False

        self._store.save_token(session.session_token)
        self._error = None
        self._set_user(session.user)
        return True

    def logout(self) -> None:
        """Sign out; the local session is cleared even if the backend call fails."""
        if self._store.has_token():
            try:
                self._api.logout()
            except MusicClientError as e:
                logger.warning("Logout request failed: %s", e)
        self._store.clear()
        self._set_user(None)

    def check_auth_status(self) -> bool:
        """Validate a stored token against /auth/me"""
        if not self._store.has_token():
            self._set_user(None)
            return False
        try:
            user = self._api.me()
        except MusicClientError as e:
            logger.info("Stored session is no longer valid: %s", e)
            self._store.clear()
            self._set_user(None)
            return False
        self._set_user(user)
        return True

    def _on_session_expired(self, data) -> None:
        logger.info("Session expired")
        with self._lock:
            had_user = self._user is not None
        if had_user:
            self._error = "Your session has expired. Please sign in again."
        self._set_user(None)

    def close(self) -> None:
        self._event_bus.unsubscribe(self._subscription)
