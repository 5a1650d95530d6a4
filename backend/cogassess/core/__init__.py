"""
Core module: configuration, scoring, difficulty and aggregation logic.
"""
from .config import settings

__all__ = ["settings"]
