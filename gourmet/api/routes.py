"""FastAPI routes for food analytics, recommendations and view counting.

Provides endpoints for:
- Trend, similarity, user behavior, seasonal and regional analytics
- The seven recommendation strategies and the personalized composer
- Food detail lookups and view counters

Service errors are translated to HTTP responses by the exception
handlers installed in `main.create_app`.
"""

from typing import Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from gourmet.api.dependencies import (
    get_cache,
    get_food_service,
    get_recommendation_service,
    get_seasonal_aggregator,
    get_similarity_engine,
    get_trend_analyzer,
    get_user_profiler,
)
from gourmet.services.cache import NullCache, TTLCache
from gourmet.services.dashboard import Dashboard, build_dashboard
from gourmet.services.food_service import FoodService
from gourmet.services.recommendation_service import (
    FoodTypeStatistic,
    InfluentialUser,
    Recommendation,
    RecommendationService,
    parse_categories,
)
from gourmet.services.seasonal_aggregator import (
    RegionalAgeStatistic,
    SeasonalAggregator,
    SeasonalFood,
)
from gourmet.services.similarity_engine import SimilarityEngine, SimilarityMatrix
from gourmet.services.trend_analyzer import TrendAnalysis, TrendAnalyzer
from gourmet.services.user_profiler import UserBehaviorProfile, UserProfiler

# Create API router
router = APIRouter(prefix="/api/v1")


# Pydantic models for request/response
class ErrorDetail(BaseModel):
    error: str
    code: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: ErrorDetail


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    cache: dict[str, Any] = Field(default_factory=dict)


# =========================================================================
# Analytics Models
# =========================================================================


class RegionCountResponse(BaseModel):
    region: str
    count: int


class TrendAnalysisResponse(BaseModel):
    """Popularity trend of a food."""

    food_id: str
    food_name: str
    food_type: str | None = None
    view_count: int
    like_count: int
    view_trend: str = Field(description="'increasing', 'stable' or 'decreasing'")
    like_trend: str = Field(description="'increasing', 'stable' or 'decreasing'")
    popularity_score: float = Field(description="0.6 * views + 0.4 * likes")
    region_distribution: list[RegionCountResponse] = Field(default_factory=list)


class SimilarFoodResponse(BaseModel):
    food_id: str
    food_name: str
    similarity_score: float = Field(ge=0.0, le=1.0)


class SimilarityMatrixResponse(BaseModel):
    """Foods sharing ingredients with the source food."""

    food_id: str
    food_name: str
    similar_foods: list[SimilarFoodResponse] = Field(default_factory=list)


class UserBehaviorResponse(BaseModel):
    """Interaction profile of a user."""

    user_id: str
    user_name: str
    favorite_food_types: list[str] = Field(default_factory=list)
    preferred_regions: list[str] = Field(default_factory=list)
    total_actions: int = 0
    activity_level: str = Field(description="'high', 'medium' or 'low'")
    influence_score: float = Field(ge=0.0, le=1.0)


class SeasonalFoodResponse(BaseModel):
    food_id: str
    food_name: str
    food_type: str | None = None
    description: str | None = None
    like_count: int = 0


class RegionalAgeStatisticResponse(BaseModel):
    region_name: str
    user_age: int | None = None
    food_type: str | None = None
    like_count: int = 0
    view_count: int = 0


class DashboardSummaryResponse(BaseModel):
    total_foods: int
    increasing_trends: int
    popular_foods: int
    trend_percentage: int


class DashboardResponse(BaseModel):
    """Combined analytics dashboard."""

    summary: DashboardSummaryResponse
    trends: list[TrendAnalysisResponse]
    regional_stats: list[RegionalAgeStatisticResponse]


# =========================================================================
# Recommendation Models
# =========================================================================


class RecommendationResponse(BaseModel):
    """A recommended food."""

    food_id: str
    food_name: str
    reason: str
    score: float = Field(ge=0.0, le=1.0)


class FoodTypeStatisticResponse(BaseModel):
    food_type: str
    food_count: int
    total_likes: int
    total_views: int
    average_rating: float


class InfluentialUserResponse(BaseModel):
    user_id: str
    user_name: str
    action_count: int
    region: str | None = None
    age: int | None = None


# =========================================================================
# Food Models
# =========================================================================


class FoodDetailResponse(BaseModel):
    """A food with its region and ingredients."""

    food_id: str
    name: str
    type: str | None = None
    description: str | None = None
    ingredients: str | list[str] | None = None
    price: float | None = None
    image_url: str | None = None
    view_count: int = 0
    region: str | None = None
    ingredient_names: list[str] = Field(default_factory=list)


class ViewCountResponse(BaseModel):
    food_id: str
    view_count: int


class BatchViewRequest(BaseModel):
    food_ids: list[str]


class BatchViewResponse(BaseModel):
    requested: int
    updated: int


class TopViewedFood(BaseModel):
    food_id: str
    name: str
    view_count: int
    rank: int


class RegionResponse(BaseModel):
    name: str
    food_count: int


NOT_FOUND = {404: {"model": ErrorResponse}}
BAD_REQUEST = {400: {"model": ErrorResponse}}


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(
    cache: TTLCache | NullCache = Depends(get_cache),
) -> HealthResponse:
    """Health check endpoint.

    Returns:
        Health status response with cache statistics.
    """
    return HealthResponse(status="healthy", service="gourmet", cache=cache.info())


# =========================================================================
# Analytics
# =========================================================================


@router.get(
    "/analytics/trends",
    response_model=list[TrendAnalysisResponse],
    responses=BAD_REQUEST,
    tags=["analytics"],
)
async def analyze_trends(
    days: int = 30,
    analyzer: TrendAnalyzer = Depends(get_trend_analyzer),
) -> list[TrendAnalysis]:
    """Analyze view and like trends of the most viewed foods."""
    return await analyzer.analyze_trends(days)


@router.get(
    "/analytics/user-behavior/{user_id}",
    response_model=UserBehaviorResponse,
    responses=NOT_FOUND,
    tags=["analytics"],
)
async def analyze_user_behavior(
    user_id: str,
    profiler: UserProfiler = Depends(get_user_profiler),
) -> UserBehaviorProfile:
    """Get the behavior profile of a user."""
    return await profiler.profile_user(user_id)


@router.get(
    "/analytics/similarity/{food_id}",
    response_model=SimilarityMatrixResponse,
    responses=NOT_FOUND,
    tags=["analytics"],
)
async def food_similarity(
    food_id: str,
    engine: SimilarityEngine = Depends(get_similarity_engine),
) -> SimilarityMatrix:
    """Get foods sharing ingredients with a food."""
    return await engine.similar_foods(food_id)


@router.get(
    "/analytics/seasonal",
    response_model=list[SeasonalFoodResponse],
    tags=["analytics"],
)
async def seasonal_foods(
    season: str = "",
    aggregator: SeasonalAggregator = Depends(get_seasonal_aggregator),
) -> list[SeasonalFood]:
    """Get foods matching a season (spring, summer, autumn, winter)."""
    return await aggregator.seasonal_recommendations(season)


@router.get(
    "/analytics/regional-age",
    response_model=list[RegionalAgeStatisticResponse],
    tags=["analytics"],
)
async def regional_age_statistics(
    aggregator: SeasonalAggregator = Depends(get_seasonal_aggregator),
) -> list[RegionalAgeStatistic]:
    """Get likes and views by region, user age and food type."""
    return await aggregator.regional_age_statistics()


@router.get(
    "/analytics/dashboard",
    response_model=DashboardResponse,
    tags=["analytics"],
)
async def analytics_dashboard(
    analyzer: TrendAnalyzer = Depends(get_trend_analyzer),
    aggregator: SeasonalAggregator = Depends(get_seasonal_aggregator),
) -> Dashboard:
    """Get summary counters, top trends and regional statistics."""
    return await build_dashboard(analyzer, aggregator)


# =========================================================================
# Recommendations
# =========================================================================


@router.get(
    "/recommendations/age-based",
    response_model=list[RecommendationResponse],
    responses=BAD_REQUEST,
    tags=["recommendations"],
)
async def age_based_recommendations(
    user_age: int,
    service: RecommendationService = Depends(get_recommendation_service),
) -> list[Recommendation]:
    """Recommend foods liked by users of other ages."""
    return await service.foods_from_different_age_groups(user_age)


@router.get(
    "/recommendations/category-region",
    response_model=list[RecommendationResponse],
    tags=["recommendations"],
)
async def category_region_recommendations(
    user_region: str = "",
    categories: str = "",
    service: RecommendationService = Depends(get_recommendation_service),
) -> list[Recommendation]:
    """Recommend foods of comma-separated categories, home region first."""
    return await service.foods_by_category_and_region(user_region, parse_categories(categories))


@router.get(
    "/recommendations/most-viewed",
    response_model=list[RecommendationResponse],
    responses=BAD_REQUEST,
    tags=["recommendations"],
)
async def most_viewed_recommendations(
    limit: int = 10,
    service: RecommendationService = Depends(get_recommendation_service),
) -> list[Recommendation]:
    """Recommend the most viewed foods."""
    return await service.most_viewed_foods(limit)


@router.get(
    "/recommendations/statistics",
    response_model=list[FoodTypeStatisticResponse],
    tags=["recommendations"],
)
async def food_type_statistics(
    service: RecommendationService = Depends(get_recommendation_service),
) -> list[FoodTypeStatistic]:
    """Get food counts, likes, views and average rating per food type."""
    return await service.food_type_statistics()


@router.get(
    "/recommendations/popular-by-age",
    response_model=list[RecommendationResponse],
    tags=["recommendations"],
)
async def popular_by_age_recommendations(
    service: RecommendationService = Depends(get_recommendation_service),
) -> list[Recommendation]:
    """Recommend foods liked by the most users."""
    return await service.popular_foods_by_age_group()


@router.get(
    "/recommendations/within-2-steps/{food_name}",
    response_model=list[RecommendationResponse],
    responses=BAD_REQUEST,
    tags=["recommendations"],
)
async def two_step_recommendations(
    food_name: str,
    service: RecommendationService = Depends(get_recommendation_service),
) -> list[Recommendation]:
    """Recommend foods sharing an ingredient with the named food."""
    return await service.foods_within_two_steps(food_name)


@router.get(
    "/recommendations/influential-users",
    response_model=list[InfluentialUserResponse],
    responses=BAD_REQUEST,
    tags=["recommendations"],
)
async def influential_users(
    limit: int = 10,
    service: RecommendationService = Depends(get_recommendation_service),
) -> list[InfluentialUser]:
    """Get the users with the most likes, views and ratings."""
    return await service.most_influential_users(limit)


@router.get(
    "/recommendations/personalized",
    response_model=list[RecommendationResponse],
    responses=BAD_REQUEST,
    tags=["recommendations"],
)
async def personalized_recommendations(
    user_id: str,
    user_age: int,
    user_region: str = "",
    categories: str = "",
    service: RecommendationService = Depends(get_recommendation_service),
) -> list[Recommendation]:
    """Get merged recommendations from several strategies.

    Args:
        user_id: The user identifier.
        user_age: The user's age.
        user_region: The user's region name.
        categories: Comma-separated preferred food types.

    Returns:
        Up to 20 recommendations, best first.
    """
    return await service.personalized_recommendations(
        user_id=user_id,
        age=user_age,
        region=user_region,
        categories=parse_categories(categories),
    )


# =========================================================================
# Foods
# =========================================================================


@router.get(
    "/foods/top-viewed",
    response_model=list[TopViewedFood],
    responses=BAD_REQUEST,
    tags=["foods"],
)
async def top_viewed_foods(
    limit: int = 6,
    foods: FoodService = Depends(get_food_service),
) -> list[dict[str, Any]]:
    """Get the most viewed foods."""
    return await foods.get_top_viewed_foods(limit)


@router.post(
    "/foods/views",
    response_model=BatchViewResponse,
    tags=["foods"],
)
async def batch_record_views(
    body: BatchViewRequest,
    foods: FoodService = Depends(get_food_service),
) -> BatchViewResponse:
    """Record one view for each of several foods."""
    updated = await foods.batch_increment_view_counts(body.food_ids)
    return BatchViewResponse(requested=len(body.food_ids), updated=updated)


@router.get(
    "/foods/{food_id}",
    response_model=FoodDetailResponse,
    responses=NOT_FOUND,
    tags=["foods"],
)
async def get_food(
    food_id: str,
    foods: FoodService = Depends(get_food_service),
) -> dict[str, Any]:
    """Get a food with its region and ingredients."""
    return await foods.get_food_detail(food_id)


@router.post(
    "/foods/{food_id}/views",
    response_model=ViewCountResponse,
    responses=NOT_FOUND,
    status_code=status.HTTP_200_OK,
    tags=["foods"],
)
async def record_view(
    food_id: str,
    foods: FoodService = Depends(get_food_service),
) -> ViewCountResponse:
    """Record a view of a food."""
    view_count = await foods.increment_view_count(food_id)
    return ViewCountResponse(food_id=food_id, view_count=view_count)


@router.get(
    "/foods/{food_id}/view-count",
    response_model=ViewCountResponse,
    responses=NOT_FOUND,
    tags=["foods"],
)
async def get_view_count(
    food_id: str,
    foods: FoodService = Depends(get_food_service),
) -> ViewCountResponse:
    """Get the view counter of a food."""
    view_count = await foods.get_view_count(food_id)
    return ViewCountResponse(food_id=food_id, view_count=view_count)


@router.get(
    "/regions",
    response_model=list[RegionResponse],
    tags=["foods"],
)
async def list_regions(
    foods: FoodService = Depends(get_food_service),
) -> list[dict[str, Any]]:
    """Get all regions with their food counts."""
    return await foods.list_regions()
