from typing import Any, Dict

from fastapi import APIRouter, Depends, FastAPI, HTTPException
from starlette.requests import Request

from hypha_lib.middleware import get_session
from hypha_lib.session import Session


def make_request(cookies: Dict[str, str] | None = None, scheme: str = "http", root_path: str = "") -> Request:
    """Build a bare Starlette request for code that only needs the scope."""
    headers = []
    if cookies:
        cookie_header = "; ".join(f"{k}={v}" for k, v in cookies.items())
        headers.append((b"cookie", cookie_header.encode("latin-1")))
    scope: Dict[str, Any] = {
        "type": "http",
        "method": "GET",
        "scheme": scheme,
        "server": ("testserver", 443 if scheme == "https" else 80),
        "root_path": root_path,
        "path": root_path + "/",
        "query_string": b"",
        "headers": headers,
    }
    return Request(scope)


def add_session_routes(app: FastAPI) -> None:
    """Mount small sync routes that drive the session like an application would.

    Handlers are plain `def` so FastAPI runs them in its thread pool, where
    blocking on a session lock is allowed.
    """
    router = APIRouter(prefix="/t")

    @router.get("/get/{key}")
    def read_value(key: str, session: Session = Depends(get_session)):
        return {"id": session.id, "value": session.get(key), "locked": session.is_locked}

    @router.get("/fresh/{key}")
    def read_fresh(key: str, session: Session = Depends(get_session)):
        session.lock_and_reload()
        value = session.get(key)
        session.unlock_and_reload()
        return {"id": session.id, "value": value}

    @router.post("/set/{key}")
    def set_value(key: str, value: str, session: Session = Depends(get_session)):
        with session.locked():
            session.set(key, value)
        return {"id": session.id}

    @router.post("/remove/{key}")
    def remove_value(key: str, session: Session = Depends(get_session)):
        with session.locked():
            session.remove(key)
        return {"id": session.id}

    @router.post("/discard/{key}")
    def discard_value(key: str, value: str, session: Session = Depends(get_session)):
        session.lock_and_reload()
        session.set(key, value)
        session.unlock_and_reload()
        return {"id": session.id, "value": session.get(key)}

    @router.post("/login")
    def login(session: Session = Depends(get_session)):
        session.lock_and_reload()
        session.set("role", "admin")
        session.change_session_id()
        session.write_and_unlock()
        return {"id": session.id}

    @router.post("/login-rejected")
    def login_rejected(session: Session = Depends(get_session)):
        try:
            with session.locked():
                session.set("role", "admin")
                session.change_session_id()
                raise PermissionError("bad credentials")
        except PermissionError:
            raise HTTPException(status_code=403, detail={"id": session.id})

    @router.post("/leave-locked")
    def leave_locked(session: Session = Depends(get_session)):
        session.lock_and_reload()
        session.set("lost", "yes")
        return {"id": session.id}

    @router.post("/misuse")
    def misuse(session: Session = Depends(get_session)):
        session.set("x", 1)
        return {}

    @router.get("/state")
    def state(request: Request):
        session = request.state.session
        return {"id": session.id, "state": session.state.value, "persisted": session.persisted_exists}

    app.include_router(router)
