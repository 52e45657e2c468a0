"""Seasonal food matching and region x age statistics."""

import logging
from dataclasses import dataclass

from gourmet.data.seasons import keywords_for_season
from gourmet.services.neo4j_service import Neo4jService

logger = logging.getLogger(__name__)

SEASONAL_LIMIT = 15
REGIONAL_AGE_LIMIT = 100


@dataclass
class SeasonalFood:
    """A food whose description mentions the season."""

    food_id: str
    food_name: str
    food_type: str | None
    description: str | None
    like_count: int


@dataclass
class RegionalAgeStatistic:
    """Likes and views for one (region, user age, food type) cell."""

    region_name: str
    user_age: int | None
    food_type: str | None
    like_count: int
    view_count: int


def matches_keywords(description: str | None, keywords: list[str]) -> bool:
    """Case-insensitive substring match of any keyword."""
    if not description:
        return False
    text = description.lower()
    return any(keyword.lower() in text for keyword in keywords)


class SeasonalAggregator:
    """Seasonal recommendations and regional cross-tabulation."""

    def __init__(self, neo4j_service: Neo4jService):
        self.neo4j = neo4j_service

    async def seasonal_recommendations(self, season: str | None) -> list[SeasonalFood]:
        """Find foods whose description mentions the season.

        Args:
            season: One of spring, summer, autumn, winter.

        Returns:
            Up to 15 foods, most liked first. Empty for an unknown season.
        """
        keywords = keywords_for_season(season)
        if not keywords:
            logger.info("Unknown season %r, returning no seasonal foods", season)
            return []

        query = """
        MATCH (f:Food)
        WHERE any(keyword IN $keywords WHERE toLower(coalesce(f.description, '')) CONTAINS keyword)
        OPTIONAL MATCH (f)<-[l:LIKES_FOOD]-(:User)
        WITH f, count(l) AS like_count
        RETURN f.food_id AS food_id,
               f.name AS food_name,
               f.type AS food_type,
               f.description AS description,
               like_count
        ORDER BY like_count DESC, food_name ASC
        LIMIT $limit
        """

        rows = await self.neo4j.query_all(query, limit=SEASONAL_LIMIT, keywords=keywords)

        return [
            SeasonalFood(
                food_id=row["food_id"],
                food_name=row.get("food_name") or "",
                food_type=row.get("food_type"),
                description=row.get("description"),
                like_count=int(row.get("like_count") or 0),
            )
            for row in rows
            if matches_keywords(row.get("description"), keywords)
        ]

    async def regional_age_statistics(self) -> list[RegionalAgeStatistic]:
        """Cross-tabulate likes and views by region, user age and food type.

        Returns:
            Rows ordered by region, then age, then like count descending.
        """
        query = """
        MATCH (r:Region)<-[:FROM_REGION]-(f:Food)<-[:LIKES_FOOD]-(u:User)
        WITH r.name AS region_name,
             u.age AS user_age,
             f.type AS food_type,
             count(*) AS like_count,
             collect(DISTINCT f) AS foods
        RETURN region_name,
               user_age,
               food_type,
               like_count,
               reduce(total = 0, food IN foods | total + coalesce(food.view_count, 0)) AS view_count
        ORDER BY region_name ASC, user_age ASC, like_count DESC
        LIMIT $limit
        """

        rows = await self.neo4j.query_all(query, limit=REGIONAL_AGE_LIMIT)

        return [
            RegionalAgeStatistic(
                region_name=row["region_name"],
                user_age=row.get("user_age"),
                food_type=row.get("food_type"),
                like_count=int(row.get("like_count") or 0),
                view_count=int(row.get("view_count") or 0),
            )
            for row in rows
        ]
