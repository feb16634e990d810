"""
Routine Service

Owns routines and workouts. The exercises they reference live in the
separate exercise catalog service; `resolution` confirms and fetches them.
"""

from src.routine_service.config import ExerciseCatalogConfig, load_config

__all__ = [
    "ExerciseCatalogConfig",
    "load_config",
]
