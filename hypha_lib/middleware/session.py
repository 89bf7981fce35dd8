from typing import Optional
import logging

from fastapi import HTTPException
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from hypha_lib.session import Session, SessionStore, bootstrap_session

logger = logging.getLogger(__name__)


class SessionMiddleware(BaseHTTPMiddleware):
    """Give every request its own `Session` and keep the cookie in sync.

    Before the route runs, `bootstrap_session` configures the cookie and
    probe-loads an existing session; the result is exposed as
    `request.state.session`. Afterwards the session is released if a
    handler left it locked, and the identifier cookie is set (new or
    rotated session) or deleted (unusable session) on the response.

    Bootstrap and release may block on a session lock, so both run in
    the thread pool rather than on the event loop.
    """

    def __init__(self, app, session_store: SessionStore, config: Optional[object] = None):
        super().__init__(app)
        self.session_store = session_store
        self.config = config

    async def dispatch(self, request: Request, call_next):
        session = await run_in_threadpool(bootstrap_session, request, self.session_store, self.config)
        request.state.session = session
        try:
            response: Response = await call_next(request)
        finally:
            await run_in_threadpool(session.ensure_released)

        settings = request.state.session_cookie
        incoming = request.cookies.get(settings.name)
        if session.id is not None and session.persisted_exists:
            if session.id != incoming:
                logger.debug("Issuing session cookie %s", settings.name)
                response.set_cookie(key=settings.name, value=session.id, **settings.as_kwargs())
        elif session.cookie_cleared:
            logger.debug("Clearing session cookie %s", settings.name)
            response.delete_cookie(key=settings.name, **settings.as_kwargs())
        return response


def get_session(request: Request) -> Session:
    """FastAPI dependency returning the request's `Session`.

    Raises HTTPException(500) when `SessionMiddleware` is not installed.
    """
    session = getattr(request.state, 'session', None)
    if session is None:
        raise HTTPException(status_code=500, detail={'error': 'session_unavailable', 'message': 'Session middleware not configured.'})
    return session
