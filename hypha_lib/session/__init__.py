"""Session lifecycle: locking, access and identifier rotation."""
from .exceptions import (
    SessionError,
    SessionConfigurationError,
    SessionStateError,
    SessionLoadError,
)
from .locks import FileLockProvider, KeyedLockProvider, LockProvider, SessionLock
from .store import SessionStore
from .session import LockState, Session
from .bootstrap import CookieSettings, bootstrap_session, cookie_settings_for, DEFAULT_COOKIE_NAME

__all__ = [
    "SessionError",
    "SessionConfigurationError",
    "SessionStateError",
    "SessionLoadError",
    "FileLockProvider",
    "KeyedLockProvider",
    "LockProvider",
    "SessionLock",
    "SessionStore",
    "LockState",
    "Session",
    "CookieSettings",
    "bootstrap_session",
    "cookie_settings_for",
    "DEFAULT_COOKIE_NAME",
]
