from fastapi import APIRouter, Depends

from file_gateway.adapters.storage import LocalImageStorage
from file_gateway.dependencies import get_storage
from file_gateway.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health_check(storage: LocalImageStorage = Depends(get_storage)) -> HealthResponse:
    """
    Health check endpoint for monitoring API status and storage readiness.

    Reports ``degraded`` when the upload root is missing or not writable.
    """
    storage_ready, detail = storage.check_ready()
    components = {
        "api": "ready",
        "storage": "ready" if storage_ready else f"error: {detail}",
    }
    return HealthResponse(
        status="ok" if storage_ready else "degraded",
        components=components,
        ready=storage_ready,
    )
