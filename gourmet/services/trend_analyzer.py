"""Trend analysis over food view and like counts.

Ranks foods by views then likes, classifies each count against fixed
thresholds and reports how a food is distributed across regions.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from gourmet.errors import require_positive
from gourmet.services.neo4j_service import Neo4jService

logger = logging.getLogger(__name__)

# Maximum number of foods analyzed per request
TREND_FOOD_LIMIT = 50

# Counts above these thresholds are "increasing" / "stable"
INCREASING_THRESHOLD = 100
STABLE_THRESHOLD = 50

VIEW_WEIGHT = 0.6
LIKE_WEIGHT = 0.4


@dataclass
class RegionCount:
    """Number of region affiliations of a food."""

    region: str
    count: int


@dataclass
class TrendAnalysis:
    """Popularity trend of a single food."""

    food_id: str
    food_name: str
    food_type: str | None
    view_count: int
    like_count: int
    view_trend: str
    like_trend: str
    popularity_score: float
    region_distribution: list[RegionCount] = field(default_factory=list)


def determine_trend(count: int) -> str:
    """Classify a count as 'increasing', 'stable' or 'decreasing'."""
    if count > INCREASING_THRESHOLD:
        return "increasing"
    if count > STABLE_THRESHOLD:
        return "stable"
    return "decreasing"


def popularity_score(view_count: int, like_count: int) -> float:
    """Weighted popularity of a food, rounded to 2 decimals."""
    return round(VIEW_WEIGHT * view_count + LIKE_WEIGHT * like_count, 2)


def region_distribution(region_names: list[str | None]) -> list[RegionCount]:
    """Count region occurrences, most frequent first.

    Missing regions are skipped rather than reported as null.
    """
    counts = Counter(name for name in region_names if name)
    return [
        RegionCount(region=name, count=count)
        for name, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]


class TrendAnalyzer:
    """Computes popularity trends per food."""

    def __init__(self, neo4j_service: Neo4jService):
        self.neo4j = neo4j_service

    async def analyze_trends(self, window_days: int = 30) -> list[TrendAnalysis]:
        """Analyze food popularity trends.

        The window is passed through to the query as `$window_days`; the
        counters themselves are lifetime totals.

        Args:
            window_days: Size of the analysis window in days.

        Returns:
            Up to 50 TrendAnalysis entries ordered by views then likes.
            Empty when there are no foods.
        """
        require_positive("window_days", window_days)

        query = """
        MATCH (f:Food)
        OPTIONAL MATCH (f)<-[l:LIKES_FOOD]-(:User)
        WITH f, count(l) AS like_count
        ORDER BY coalesce(f.view_count, 0) DESC, like_count DESC
        LIMIT $limit
        OPTIONAL MATCH (f)-[:FROM_REGION]->(r:Region)
        WITH f, like_count, collect(r.name) AS region_names
        RETURN f.food_id AS food_id,
               f.name AS food_name,
               f.type AS food_type,
               coalesce(f.view_count, 0) AS view_count,
               like_count,
               region_names
        ORDER BY view_count DESC, like_count DESC
        """

        rows = await self.neo4j.query_all(
            query,
            limit=TREND_FOOD_LIMIT,
            window_days=window_days,
        )
        logger.info("Analyzing trends for %d foods (window=%d days)", len(rows), window_days)

        return [self._to_trend(row) for row in rows]

    def _to_trend(self, food: dict[str, Any]) -> TrendAnalysis:
        view_count = max(0, int(food.get("view_count") or 0))
        like_count = max(0, int(food.get("like_count") or 0))
        return TrendAnalysis(
            food_id=food["food_id"],
            food_name=food.get("food_name") or "",
            food_type=food.get("food_type"),
            view_count=view_count,
            like_count=like_count,
            view_trend=determine_trend(view_count),
            like_trend=determine_trend(like_count),
            popularity_score=popularity_score(view_count, like_count),
            region_distribution=region_distribution(food.get("region_names") or []),
        )
