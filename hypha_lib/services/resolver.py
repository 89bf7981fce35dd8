from typing import Any
from fastapi import HTTPException
from starlette.requests import HTTPConnection


def resolve_service(request: HTTPConnection, name: str) -> Any:
    """Resolve a named service from the application's service container.

    Requires `app.state.container` with the named registration, otherwise
    an HTTP 500 is raised.
    """
    container = getattr(request.app.state, 'container', None)
    if container is None:
        raise HTTPException(status_code=500, detail="Service container not configured")
    try:
        return container.get(name)
    except KeyError:
        raise HTTPException(status_code=500, detail=f"Service '{name}' not configured")
