"""
API Routes Module

This module contains all API endpoint implementations organized by function:
- meter.py: CT table and AISS lookup endpoints
- sessions.py: Stored meter sessions per device
- projection.py: Resource projection endpoint

All routers are combined in main.py to create the complete API.
"""

from .meter import router as meter_router
from .sessions import router as sessions_router
from .projection import router as projection_router

__all__ = [
    "meter_router",
    "sessions_router",
    "projection_router",
]
