"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.exercise_mapping import router as exercise_mapping_router

__all__ = [
    "exercise_mapping_router",
]
