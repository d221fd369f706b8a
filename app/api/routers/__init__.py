"""
app/api/routers package marker.
"""

from app.api.routers.client_router import router as client_router
from app.api.routers.metrics_router import router as metrics_router
from app.api.routers.plan_router import router as plan_router
from app.api.routers.transaction_import_router import router as transaction_import_router

__all__ = [
    "client_router",
    "metrics_router",
    "plan_router",
    "transaction_import_router",
]
