"""Services package for graph access and analytics."""

from gourmet.services.cache import NullCache, TTLCache
from gourmet.services.dashboard import build_dashboard
from gourmet.services.food_service import FoodService
from gourmet.services.neo4j_service import Neo4jService
from gourmet.services.recommendation_service import RecommendationService
from gourmet.services.seasonal_aggregator import SeasonalAggregator
from gourmet.services.similarity_engine import SimilarityEngine
from gourmet.services.trend_analyzer import TrendAnalyzer
from gourmet.services.user_profiler import UserProfiler

__all__ = [
    "Neo4jService",
    "TTLCache",
    "NullCache",
    "TrendAnalyzer",
    "SimilarityEngine",
    "UserProfiler",
    "RecommendationService",
    "SeasonalAggregator",
    "FoodService",
    "build_dashboard",
]
