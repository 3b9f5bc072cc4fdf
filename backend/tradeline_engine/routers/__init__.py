"""Tradeline Engine - API Routers"""
from .analysis import router as analysis_router

__all__ = [
    "analysis_router",
]
