"""User behavior profiling from likes, views, ratings and region preferences."""

import logging
from dataclasses import dataclass, field

from gourmet.errors import NotFoundError, require_text
from gourmet.services.neo4j_service import Neo4jService

logger = logging.getLogger(__name__)

HIGH_ACTIVITY_THRESHOLD = 50
MEDIUM_ACTIVITY_THRESHOLD = 20

ACTION_WEIGHT = 0.01
FOOD_TYPE_WEIGHT = 0.1


@dataclass
class UserBehaviorProfile:
    """Aggregated interaction profile of a user."""

    user_id: str
    user_name: str
    favorite_food_types: list[str] = field(default_factory=list)
    preferred_regions: list[str] = field(default_factory=list)
    total_actions: int = 0
    activity_level: str = "low"
    influence_score: float = 0.0


def determine_activity_level(total_actions: int) -> str:
    """Classify a user's action count as 'high', 'medium' or 'low'."""
    if total_actions > HIGH_ACTIVITY_THRESHOLD:
        return "high"
    if total_actions > MEDIUM_ACTIVITY_THRESHOLD:
        return "medium"
    return "low"


def influence_score(total_actions: int, food_type_count: int) -> float:
    """Influence of a user, capped at 1.0."""
    score = total_actions * ACTION_WEIGHT + food_type_count * FOOD_TYPE_WEIGHT
    return min(1.0, max(0.0, score))


def _distinct(values: list[str | None]) -> list[str]:
    """Drop empty values and duplicates, keeping first-seen order."""
    return list(dict.fromkeys(v for v in values if v))


class UserProfiler:
    """Builds UserBehaviorProfile objects."""

    def __init__(self, neo4j_service: Neo4jService):
        self.neo4j = neo4j_service

    async def profile_user(self, user_id: str) -> UserBehaviorProfile:
        """Aggregate a user's interactions into a behavior profile.

        Args:
            user_id: The user identifier.

        Returns:
            UserBehaviorProfile for the user.

        Raises:
            NotFoundError: If the user does not exist.
        """
        user_id = require_text("user_id", user_id)

        query = """
        MATCH (u:User {user_id: $user_id})
        OPTIONAL MATCH (u)-[action:LIKES_FOOD|VIEWS_FOOD|RATES_FOOD]->(f:Food)
        WITH u,
             sum(CASE type(action) WHEN 'LIKES_FOOD' THEN 1 ELSE 0 END) AS like_count,
             sum(CASE type(action) WHEN 'VIEWS_FOOD' THEN 1 ELSE 0 END) AS view_count,
             sum(CASE type(action) WHEN 'RATES_FOOD' THEN 1 ELSE 0 END) AS rating_count,
             collect(DISTINCT f.type) AS food_types
        OPTIONAL MATCH (u)-[:PREFERS_REGION]->(r:Region)
        RETURN u.user_id AS user_id,
               u.name AS user_name,
               like_count,
               view_count,
               rating_count,
               food_types,
               collect(DISTINCT r.name) AS regions
        """

        row = await self.neo4j.query_one(query, user_id=user_id)
        if row is None:
            raise NotFoundError("user", user_id)

        food_types = _distinct(row.get("food_types") or [])
        regions = _distinct(row.get("regions") or [])
        total_actions = sum(
            int(row.get(key) or 0) for key in ("like_count", "view_count", "rating_count")
        )

        logger.info(
            "User %s: %d actions across %d food types", user_id, total_actions, len(food_types)
        )

        return UserBehaviorProfile(
            user_id=row["user_id"],
            user_name=row.get("user_name") or "",
            favorite_food_types=food_types,
            preferred_regions=regions,
            total_actions=total_actions,
            activity_level=determine_activity_level(total_actions),
            influence_score=round(influence_score(total_actions, len(food_types)), 2),
        )
