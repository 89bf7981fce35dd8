from fastapi import APIRouter, Request
from hypha_lib.services.resolver import resolve_service
from .health import get_health

router = APIRouter()


@router.get('/health')
async def api_health(request: Request):
    config = resolve_service(request, 'config')
    return get_health(storage_backend=config.storage_backend)
