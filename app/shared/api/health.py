from fastapi import APIRouter

from .utils import ApiSuccess

router = APIRouter()


@router.get("/health", response_model=ApiSuccess)
@router.get("/api/health", response_model=ApiSuccess, include_in_schema=False)
async def health():
    """Liveness probe; does not require authentication."""
    return ApiSuccess(results={"status": "ok", "message": "Server is running"})
