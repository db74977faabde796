"""
LeafCare Diagnosis API

FastAPI host for the crop disease diagnosis pipeline: one crop model
resident at a time, remedies screened against the banned pesticide lists.

Usage:
    uvicorn leafcare.main:app --reload
    uvicorn leafcare.main:app --host 0.0.0.0 --port 8000

Workers:
    Run a single worker per model directory; each worker holds its own
    model slot.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leafcare.core.config import get_settings
from leafcare.core.dependencies import get_diagnosis_pipeline
from leafcare.api.routes import diagnosis_router, health_router, safety_router
from leafcare.api.routes.health import set_startup_time
from leafcare.ml.crops import default_crop
from leafcare.models.schemas import ErrorResponse

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup:
    - Preload the default crop's model

    Runs on shutdown:
    - Release the resident model
    """
    logger.info("Starting LeafCare Diagnosis API...")
    set_startup_time()

    pipeline = get_diagnosis_pipeline()
    error = pipeline.model_store.ensure_loaded(default_crop())
    if error is not None:
        # Continue startup - models load on first diagnosis
        logger.error(f"Default model not preloaded: {error}")

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down LeafCare Diagnosis API...")
    pipeline.release()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
## LeafCare Diagnosis API

Photograph a leaf, pick the crop, get a diagnosis.

### Features

- **Crop-specific models**: Apple, Tomato, Potato, Mango, Guava, Cotton
- **Categorized remedies**: Chemical, organic and traditional treatments
- **Chemical safety**: Banned substances redacted, restricted ones flagged
  with mandatory protective equipment (CIBRC 2025)

### API Endpoints

- `POST /api/v1/diagnose` - Diagnose a base64-encoded leaf image
- `GET /api/v1/crops` - Supported crops
- `POST /api/v1/safety/check` - Screen a chemical name
- `GET /api/v1/health` - Health check
- `GET /api/v1/health/ready` - Model slot status
    """,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    body = ErrorResponse(
        error="internal_server_error",
        message="Diagnosis service failed unexpectedly.",
        details=str(exc) if settings.debug else None,
    )
    return JSONResponse(status_code=500, content=body.model_dump())


app.include_router(health_router, prefix=settings.api_prefix)
app.include_router(diagnosis_router, prefix=settings.api_prefix)
app.include_router(safety_router, prefix=settings.api_prefix)


@app.get("/", tags=["Root"])
async def root():
    prefix = settings.api_prefix
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": app.docs_url,
        "crops": f"{prefix}/crops",
        "diagnosis_endpoint": f"{prefix}/diagnose",
        "safety_endpoint": f"{prefix}/safety/check",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "leafcare.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
