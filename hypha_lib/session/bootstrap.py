"""Per-request session setup.

`bootstrap_session` runs once per request before anything touches the
session. It fixes the cookie attributes, then, only when the client sent
an identifier cookie, probe-loads that session: load, write back to keep
it alive, and unlock again straight away so other requests in the same
session are not held up for the whole request.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Optional

from starlette.requests import HTTPConnection

from .exceptions import SessionConfigurationError, SessionLoadError
from .session import Session
from .store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_COOKIE_NAME = "hyphaSession"

# Names host frameworks use by default; sharing them would mix our
# session with other applications on the same domain.
GENERIC_COOKIE_NAMES = frozenset({"session", "sessionid", "phpsessid", "jsessionid"})


@dataclass(frozen=True)
class CookieSettings:
    name: str
    path: str
    secure: bool
    httponly: bool = True
    samesite: str = "strict"

    def as_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for `Response.set_cookie`/`delete_cookie`."""
        return {
            "path": self.path,
            "secure": self.secure,
            "httponly": self.httponly,
            "samesite": self.samesite,
        }


def root_path(request: HTTPConnection) -> str:
    """Return the application's root URL path, always ending in '/'."""
    root = request.scope.get("root_path") or ""
    return root.rstrip("/") + "/"


def cookie_settings_for(request: HTTPConnection, cookie_name: str = DEFAULT_COOKIE_NAME) -> CookieSettings:
    if not cookie_name or cookie_name.lower() in GENERIC_COOKIE_NAMES:
        raise SessionConfigurationError(f"session cookie name {cookie_name!r} must be application specific")
    return CookieSettings(
        name=cookie_name,
        path=root_path(request),
        # Only send the cookie over TLS when the request arrived over TLS
        secure=request.url.scheme in ("https", "wss"),
    )


def bootstrap_session(request: HTTPConnection, store: SessionStore, config: Optional[Any] = None) -> Session:
    """Create the request's `Session`.

    `config` is anything with `auto_start`, `cookie_name` and
    `strict_reads` attributes (normally `hypha_lib.main.Config`).

    Raises `SessionConfigurationError` if sessions are configured to
    start automatically or if this request already has a session. A
    cookie that points at an unusable session is not an error: the
    session forgets the identifier and the cookie is cleared on the
    response, so the client starts over instead of failing forever.
    """
    auto_start = getattr(config, "auto_start", False)
    cookie_name = getattr(config, "cookie_name", DEFAULT_COOKIE_NAME)
    strict_reads = getattr(config, "strict_reads", False)

    if auto_start:
        raise SessionConfigurationError("session auto_start must be disabled")
    if getattr(request.state, "session", None) is not None:
        raise SessionConfigurationError("session must not be started before bootstrap_session")

    settings = cookie_settings_for(request, cookie_name)
    request.state.session_cookie = settings

    sid = request.cookies.get(settings.name)
    session = Session(store, session_id=sid or None, strict_reads=strict_reads)
    if sid:
        try:
            session.probe_load()
        except SessionLoadError as e:
            logger.warning("Discarding session cookie: %s", e)
            session.forget()
    return session
