"""Service modules"""
from .cache import SnapshotCache
from .engine import PositionAnalyticsEngine

__all__ = ["PositionAnalyticsEngine", "SnapshotCache"]
