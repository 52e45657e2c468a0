"""Recommendation strategies over the food graph.

Seven independent strategies, each backed by one Cypher query:
- age-difference expansion
- category + region matching
- most viewed
- food type statistics
- popular across age groups
- two-hop ingredient traversal
- most influential users

`personalized_recommendations` runs four of them concurrently and
merges the results by food id, boosting foods that several strategies
agree on. A failing strategy contributes nothing instead of failing
the whole request.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Awaitable

from gourmet.errors import InvalidInputError, require_positive, require_text
from gourmet.services.neo4j_service import Neo4jService

logger = logging.getLogger(__name__)

AGE_BASED_LIMIT = 20
CATEGORY_REGION_LIMIT = 15
POPULAR_BY_AGE_LIMIT = 20
TWO_HOP_LIMIT = 15
PERSONALIZED_LIMIT = 20
PERSONALIZED_MOST_VIEWED = 5
MAX_LIMIT = 100

# Score added each time another strategy recommends the same food
MERGE_BOOST = 0.1


@dataclass
class Recommendation:
    """A recommended food with a human-readable reason."""

    food_id: str
    food_name: str
    reason: str
    score: float


@dataclass
class FoodTypeStatistic:
    """Aggregate counters for one food type."""

    food_type: str
    food_count: int
    total_likes: int
    total_views: int
    average_rating: float


@dataclass
class InfluentialUser:
    """A user ranked by number of interactions."""

    user_id: str
    user_name: str
    action_count: int
    region: str | None = None
    age: int | None = None


def clamp_score(score: float) -> float:
    """Clamp a score to [0, 1] and round to 2 decimals."""
    return round(min(1.0, max(0.0, score)), 2)


def age_gap_score(age_gap: int) -> float:
    """Score a food by how close the liking user's age is to the target."""
    if age_gap <= 5:
        return 0.8
    if age_gap <= 10:
        return 0.6
    return 0.4


def rank_score(rank_index: int, step: float) -> float:
    """Linearly decaying score for ranked lists, never below 0."""
    return clamp_score(1.0 - step * rank_index)


def two_hop_score(different_type: bool, same_region: bool) -> float:
    """Score a food reached through a shared ingredient."""
    if different_type:
        return 0.9
    if same_region:
        return 0.8
    return 0.6


def merge_recommendations(
    groups: list[list[Recommendation]],
    limit: int = PERSONALIZED_LIMIT,
) -> list[Recommendation]:
    """Merge strategy outputs keyed by food id.

    The first occurrence of a food is kept as the base record; each later
    occurrence adds a flat MERGE_BOOST, capped at 1.0. The result is
    sorted by score descending (ties keep first-seen order).

    Args:
        groups: Recommendation lists, in strategy order.
        limit: Maximum number of merged recommendations.

    Returns:
        Merged and ranked recommendations. Input records are not mutated.
    """
    merged: dict[str, Recommendation] = {}
    for group in groups:
        for rec in group:
            existing = merged.get(rec.food_id)
            if existing is None:
                merged[rec.food_id] = replace(rec)
            else:
                existing.score = clamp_score(existing.score + MERGE_BOOST)

    ranked = sorted(merged.values(), key=lambda r: r.score, reverse=True)
    return ranked[:limit]


def parse_categories(categories: list[str] | str | None) -> list[str]:
    """Normalize categories from a list or a comma-separated string."""
    if categories is None:
        return []
    if isinstance(categories, str):
        categories = categories.split(",")
    return list(dict.fromkeys(c.strip() for c in categories if c and c.strip()))


def _dedupe_by_food(recommendations: list[Recommendation]) -> list[Recommendation]:
    """Keep the first recommendation of each food."""
    seen: dict[str, Recommendation] = {}
    for rec in recommendations:
        seen.setdefault(rec.food_id, rec)
    return list(seen.values())


class RecommendationService:
    """Service for generating food recommendations from the graph."""

    def __init__(self, neo4j_service: Neo4jService):
        """Initialize the recommendation service.

        Args:
            neo4j_service: Graph gateway used by every strategy.
        """
        self.neo4j = neo4j_service

    # =========================================================================
    # Strategies
    # =========================================================================

    async def foods_from_different_age_groups(self, target_age: int) -> list[Recommendation]:
        """Recommend foods liked by users of a different age.

        Broadens taste by looking outside the user's own age. Closer ages
        rank first.

        Args:
            target_age: Age of the user receiving recommendations.

        Returns:
            Up to 20 recommendations, one per food.
        """
        if target_age < 0:
            raise InvalidInputError(f"target_age must not be negative, got {target_age}")

        # One row per food, carrying the liking age closest to the target
        query = """
        MATCH (u:User)-[:LIKES_FOOD]->(f:Food)
        WHERE u.age IS NOT NULL AND u.age <> $target_age
        WITH f, u.age AS user_age
        ORDER BY abs(user_age - $target_age) ASC, user_age ASC
        WITH f, collect(user_age)[0] AS user_age
        RETURN f.food_id AS food_id,
               f.name AS food_name,
               user_age
        ORDER BY abs(user_age - $target_age) ASC, user_age ASC, food_name ASC
        LIMIT $limit
        """

        rows = await self.neo4j.query_all(
            query, limit=AGE_BASED_LIMIT, target_age=target_age
        )

        recommendations = []
        for row in rows:
            user_age = int(row["user_age"])
            recommendations.append(
                Recommendation(
                    food_id=row["food_id"],
                    food_name=row.get("food_name") or "",
                    reason=f"Liked by users aged {user_age}",
                    score=age_gap_score(abs(user_age - target_age)),
                )
            )

        recommendations = _dedupe_by_food(recommendations)
        recommendations.sort(key=lambda r: r.score, reverse=True)
        return recommendations[:AGE_BASED_LIMIT]

    async def foods_by_category_and_region(
        self,
        region: str,
        categories: list[str] | None = None,
    ) -> list[Recommendation]:
        """Recommend foods of the preferred categories, favouring the user's region.

        An empty category list lists foods of every type instead of
        matching nothing. Foods without a region are still returned, at
        the lower score.

        Args:
            region: The user's region name.
            categories: Preferred food types.

        Returns:
            Up to 15 recommendations, home-region foods first.
        """
        categories = parse_categories(categories)
        region = (region or "").strip()

        if categories:
            type_filter = "WHERE f.type IN $categories"
        else:
            logger.info("No preferred categories given, listing foods of every type")
            type_filter = ""

        query = f"""
        MATCH (f:Food)
        {type_filter}
        OPTIONAL MATCH (f)-[:FROM_REGION]->(r:Region)
        WITH f, collect(r.name) AS region_names
        RETURN f.food_id AS food_id,
               f.name AS food_name,
               f.type AS food_type,
               region_names
        ORDER BY ($region IN region_names) DESC, f.name ASC
        LIMIT $limit
        """

        rows = await self.neo4j.query_all(
            query,
            limit=CATEGORY_REGION_LIMIT,
            region=region,
            categories=categories,
        )

        recommendations = []
        for row in rows:
            region_names = [name for name in row.get("region_names") or [] if name]
            in_region = bool(region) and region in region_names
            origin = region if in_region else (region_names[0] if region_names else None)
            food_type = row.get("food_type") or "food"
            reason = f"{food_type} from {origin}" if origin else food_type
            recommendations.append(
                Recommendation(
                    food_id=row["food_id"],
                    food_name=row.get("food_name") or "",
                    reason=reason,
                    score=1.0 if in_region else 0.7,
                )
            )

        recommendations = _dedupe_by_food(recommendations)
        recommendations.sort(key=lambda r: (-r.score, r.food_name))
        return recommendations[:CATEGORY_REGION_LIMIT]

    async def most_viewed_foods(self, limit: int = 10) -> list[Recommendation]:
        """Recommend the most viewed foods.

        Args:
            limit: Number of foods to return (1-100).

        Returns:
            At most `limit` recommendations scored by rank.
        """
        require_positive("limit", limit)
        limit = min(limit, MAX_LIMIT)

        query = """
        MATCH (f:Food)
        RETURN f.food_id AS food_id,
               f.name AS food_name,
               coalesce(f.view_count, 0) AS view_count
        ORDER BY view_count DESC, f.name ASC
        LIMIT $limit
        """

        rows = await self.neo4j.query_all(query, limit=limit)

        return [
            Recommendation(
                food_id=row["food_id"],
                food_name=row.get("food_name") or "",
                reason=f"Most viewed - Top {index + 1}",
                score=rank_score(index, 0.1),
            )
            for index, row in enumerate(rows[:limit])
        ]

    async def food_type_statistics(self) -> list[FoodTypeStatistic]:
        """Count foods, likes, views and average rating per food type.

        Returns:
            One entry per type, most liked first.
        """
        query = """
        MATCH (f:Food)
        OPTIONAL MATCH (f)<-[l:LIKES_FOOD]-(:User)
        WITH f, count(l) AS likes
        OPTIONAL MATCH (f)<-[rated:RATES_FOOD]-(:User)
        WITH f, likes, avg(rated.rating) AS food_rating
        RETURN coalesce(f.type, 'unknown') AS food_type,
               count(f) AS food_count,
               sum(likes) AS total_likes,
               sum(coalesce(f.view_count, 0)) AS total_views,
               avg(food_rating) AS average_rating
        ORDER BY total_likes DESC, food_type ASC
        LIMIT $limit
        """

        rows = await self.neo4j.query_all(query, limit=MAX_LIMIT)

        return [
            FoodTypeStatistic(
                food_type=row["food_type"],
                food_count=int(row.get("food_count") or 0),
                total_likes=int(row.get("total_likes") or 0),
                total_views=int(row.get("total_views") or 0),
                average_rating=round(float(row.get("average_rating") or 0.0), 2),
            )
            for row in rows
        ]

    async def popular_foods_by_age_group(self) -> list[Recommendation]:
        """Recommend foods liked by the largest number of distinct users.

        Returns:
            Up to 20 recommendations scored by rank.
        """
        query = """
        MATCH (u:User)-[:LIKES_FOOD]->(f:Food)
        WITH f, count(DISTINCT u) AS user_count
        RETURN f.food_id AS food_id,
               f.name AS food_name,
               user_count
        ORDER BY user_count DESC, food_name ASC
        LIMIT $limit
        """

        rows = await self.neo4j.query_all(query, limit=POPULAR_BY_AGE_LIMIT)

        return [
            Recommendation(
                food_id=row["food_id"],
                food_name=row.get("food_name") or "",
                reason=f"Popular with {int(row.get('user_count') or 0)} users",
                score=rank_score(index, 0.05),
            )
            for index, row in enumerate(rows)
        ]

    async def foods_within_two_steps(self, food_name: str) -> list[Recommendation]:
        """Recommend foods sharing an ingredient with the named food.

        Foods of a different type rank highest to diversify suggestions,
        then foods from the same region.

        Args:
            food_name: Exact name of the starting food.

        Returns:
            Up to 15 recommendations, never including the starting food.
            Empty if the food is unknown or shares no ingredient.
        """
        food_name = require_text("food_name", food_name)

        query = """
        MATCH (source:Food {name: $food_name})-[:HAS_INGREDIENT]->(:Ingredient)
              <-[:HAS_INGREDIENT]-(other:Food)
        WHERE other.food_id <> source.food_id AND other.name <> $food_name
        WITH DISTINCT source, other
        OPTIONAL MATCH (source)-[:FROM_REGION]->(shared:Region)<-[:FROM_REGION]-(other)
        WITH source, other, count(shared) > 0 AS same_region
        WITH source, other, same_region,
             CASE
                 WHEN source.type IS NOT NULL AND other.type IS NOT NULL
                      AND source.type <> other.type THEN 0.9
                 WHEN same_region THEN 0.8
                 ELSE 0.6
             END AS score
        RETURN other.food_id AS food_id,
               other.name AS food_name,
               other.type AS food_type,
               source.type AS source_type,
               same_region,
               score
        ORDER BY score DESC, food_name ASC
        LIMIT $limit
        """

        rows = await self.neo4j.query_all(query, limit=MAX_LIMIT, food_name=food_name)

        recommendations = []
        for row in rows:
            if row.get("food_name") == food_name:
                continue
            source_type = row.get("source_type")
            food_type = row.get("food_type")
            different_type = (
                source_type is not None and food_type is not None and source_type != food_type
            )
            recommendations.append(
                Recommendation(
                    food_id=row["food_id"],
                    food_name=row.get("food_name") or "",
                    reason=f"Related to {food_name}",
                    score=two_hop_score(different_type, bool(row.get("same_region"))),
                )
            )

        recommendations = _dedupe_by_food(recommendations)
        recommendations.sort(key=lambda r: (-r.score, r.food_name))
        return recommendations[:TWO_HOP_LIMIT]

    async def most_influential_users(self, limit: int = 10) -> list[InfluentialUser]:
        """Rank users by their number of likes, views and ratings.

        Args:
            limit: Number of users to return (1-100).

        Returns:
            At most `limit` users, most active first.
        """
        require_positive("limit", limit)
        limit = min(limit, MAX_LIMIT)

        query = """
        MATCH (u:User)
        OPTIONAL MATCH (u)-[action:LIKES_FOOD|VIEWS_FOOD|RATES_FOOD]->(:Food)
        WITH u, count(action) AS action_count
        RETURN u.user_id AS user_id,
               u.name AS user_name,
               u.region AS region,
               u.age AS age,
               action_count
        ORDER BY action_count DESC, user_name ASC
        LIMIT $limit
        """

        rows = await self.neo4j.query_all(query, limit=limit)

        return [
            InfluentialUser(
                user_id=row["user_id"],
                user_name=row.get("user_name") or "",
                action_count=int(row.get("action_count") or 0),
                region=row.get("region"),
                age=row.get("age"),
            )
            for row in rows[:limit]
        ]

    # =========================================================================
    # Composition
    # =========================================================================

    async def personalized_recommendations(
        self,
        user_id: str,
        age: int,
        region: str,
        categories: list[str] | None = None,
    ) -> list[Recommendation]:
        """Combine several strategies into one personalized list.

        Runs age-difference, category+region, popular-by-age and
        most-viewed(5) concurrently, then merges by food id.

        Args:
            user_id: The user receiving recommendations.
            age: The user's age.
            region: The user's region name.
            categories: Preferred food types.

        Returns:
            Up to 20 merged recommendations, best first.
        """
        user_id = require_text("user_id", user_id)
        if age < 0:
            raise InvalidInputError(f"age must not be negative, got {age}")

        strategies: list[tuple[str, Awaitable[list[Recommendation]]]] = [
            ("age_based", self.foods_from_different_age_groups(age)),
            ("category_region", self.foods_by_category_and_region(region, categories)),
            ("popular_by_age", self.popular_foods_by_age_group()),
            ("most_viewed", self.most_viewed_foods(PERSONALIZED_MOST_VIEWED)),
        ]

        results = await asyncio.gather(
            *(awaitable for _, awaitable in strategies),
            return_exceptions=True,
        )

        groups: list[list[Recommendation]] = []
        for (name, _), result in zip(strategies, results):
            groups.append(self._strategy_result(name, user_id, result))

        merged = merge_recommendations(groups, limit=PERSONALIZED_LIMIT)
        logger.info(
            "Personalized recommendations for %s: %d merged from %s",
            user_id,
            len(merged),
            [len(group) for group in groups],
        )
        return merged

    def _strategy_result(
        self,
        name: str,
        user_id: str,
        result: Any,
    ) -> list[Recommendation]:
        """Turn a gathered strategy result into a list, degrading failures to []."""
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning(
                "Strategy %s failed for user %s, contributing no recommendations: %s",
                name,
                user_id,
                result,
                exc_info=result,
            )
            return []
        return result
