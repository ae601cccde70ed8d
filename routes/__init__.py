"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.imports import router as imports_router
from routes.switches import router as switches_router

__all__ = [
    "imports_router",
    "switches_router",
]
