"""
Health check endpoints.

- Liveness
- Readiness: which crop model occupies the slot, and whether the last
  load failed
"""

from typing import Optional
import time

from fastapi import APIRouter, Depends

from leafcare import __version__
from leafcare.core.dependencies import get_model_store
from leafcare.ml.model_store import ModelStore
from leafcare.models.schemas import HealthResponse, ModelSlotStatus, ReadinessResponse

router = APIRouter(prefix="/health", tags=["Health"])

_started_at: Optional[float] = None


def set_startup_time() -> None:
    """Record process start; called from the app lifespan."""
    global _started_at
    _started_at = time.time()


def slot_status(model_store: ModelStore) -> ModelSlotStatus:
    info = model_store.get_model_info()
    last_error = model_store.last_error
    return ModelSlotStatus(
        state=model_store.state,
        crop=info.crop if info else None,
        artifact=info.artifact if info else None,
        num_classes=info.num_classes if info else None,
        last_error=str(last_error) if last_error is not None else None,
    )


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy", timestamp=time.time(), version=__version__)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(
    model_store: ModelStore = Depends(get_model_store),
) -> ReadinessResponse:
    """
    Report the model slot.

    An empty slot is still ready: models load on the first diagnosis for a
    crop. A failed last load reports as degraded.
    """
    slot = slot_status(model_store)
    return ReadinessResponse(
        status="degraded" if slot.last_error else "ready",
        timestamp=time.time(),
        version=__version__,
        slot=slot,
        uptime_seconds=time.time() - _started_at if _started_at else None,
    )


@router.get("/live")
async def liveness_check() -> dict:
    return {"status": "alive"}
