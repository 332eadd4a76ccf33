"""
Exercise catalog for liftlog.

Maps exercise IDs to display names, equipment and time-based flags.
"""

from .base import ExerciseCatalog
from .registry import get_catalog, reset_catalog

__all__ = [
    "ExerciseCatalog",
    "get_catalog",
    "reset_catalog",
]
