"""
app/api/routers package marker.
"""

from app.api.routers.ingestion_orchestrator import router as ingestion_orchestrator_router
from app.api.routers.readings import router as readings_router

__all__ = [
    "ingestion_orchestrator_router",
    "readings_router",
]
