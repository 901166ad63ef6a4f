from __future__ import annotations

from admission.api.routes.health import router as health_router
from admission.api.routes.policies import router as policies_router
from admission.api.routes.teapot import router as teapot_router

__all__ = ["health_router", "policies_router", "teapot_router"]
