# API routes module
from leafcare.api.routes.diagnosis import router as diagnosis_router
from leafcare.api.routes.health import router as health_router
from leafcare.api.routes.safety import router as safety_router

__all__ = ["diagnosis_router", "health_router", "safety_router"]
