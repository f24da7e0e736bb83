"""
app/api/routers package marker.
"""

from app.api.routers.report_ingestion import router as report_ingestion_router

__all__ = [
    "report_ingestion_router",
]
