"""
Health API Routes
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from leadboard.api.dependencies import get_backend, get_page_manager
from leadboard.backend.client import BackendClient
from leadboard.pages.sessions import PageSessionManager

router = APIRouter()


@router.get("/health")
async def health_check(
    backend: BackendClient = Depends(get_backend),
    manager: PageSessionManager = Depends(get_page_manager),
) -> JSONResponse:
    """Application and backend health"""
    details = await backend.health()
    ok = bool(details.get("ok"))
    return JSONResponse(
        status_code=status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if ok else "degraded",
            "backend": details,
            "page_sessions": len(manager.sessions),
        },
    )
