"""Recommendations package: scoring, recently viewed history and the engine."""
from .history import RecentlyViewedEntry, RecentlyViewedEvent, RecentlyViewedStore
from .engine import RecommendationEngine, RecommendationSet
from .scoring import COMPLEMENTARY_CATEGORIES, ViewingProfile

__all__ = [
    "RecentlyViewedEntry",
    "RecentlyViewedEvent",
    "RecentlyViewedStore",
    "RecommendationEngine",
    "RecommendationSet",
    "COMPLEMENTARY_CATEGORIES",
    "ViewingProfile",
]
