"""Credit Dispute Engine - API Routers"""
from .reports import router as reports_router
from .letters import router as letters_router

__all__ = [
    "reports_router",
    "letters_router",
]
