"""FastAPI dependency providers.

The gateway and the cache live on `app.state` (set up in `create_app`);
services are built per request on top of them.
"""

from fastapi import Request

from gourmet.services.cache import NullCache, TTLCache
from gourmet.services.food_service import FoodService
from gourmet.services.neo4j_service import Neo4jService
from gourmet.services.recommendation_service import RecommendationService
from gourmet.services.seasonal_aggregator import SeasonalAggregator
from gourmet.services.similarity_engine import SimilarityEngine
from gourmet.services.trend_analyzer import TrendAnalyzer
from gourmet.services.user_profiler import UserProfiler


def get_neo4j(request: Request) -> Neo4jService:
    return request.app.state.neo4j


def get_cache(request: Request) -> TTLCache | NullCache:
    return request.app.state.cache


def get_trend_analyzer(request: Request) -> TrendAnalyzer:
    return TrendAnalyzer(get_neo4j(request))


def get_similarity_engine(request: Request) -> SimilarityEngine:
    return SimilarityEngine(get_neo4j(request))


def get_user_profiler(request: Request) -> UserProfiler:
    return UserProfiler(get_neo4j(request))


def get_recommendation_service(request: Request) -> RecommendationService:
    return RecommendationService(get_neo4j(request))


def get_seasonal_aggregator(request: Request) -> SeasonalAggregator:
    return SeasonalAggregator(get_neo4j(request))


def get_food_service(request: Request) -> FoodService:
    return FoodService(get_neo4j(request), get_cache(request))
