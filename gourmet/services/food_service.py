"""Food detail lookups and view counting.

Food details are served through a read-through cache keyed by food id.
Every view-count write invalidates the cached entry of the same food
before returning.
"""

import logging
from typing import Any

from gourmet.errors import NotFoundError, require_positive, require_text
from gourmet.services.cache import NullCache, TTLCache
from gourmet.services.neo4j_service import Neo4jService

logger = logging.getLogger(__name__)

MAX_LIMIT = 100


def food_cache_key(food_id: str) -> str:
    return f"food:{food_id}"


class FoodService:
    """Service for food detail, view counts and regions."""

    def __init__(
        self,
        neo4j_service: Neo4jService,
        cache: TTLCache | NullCache | None = None,
    ):
        """Initialize the food service.

        Args:
            neo4j_service: Graph gateway.
            cache: Read cache for food details. Defaults to no caching.
        """
        self.neo4j = neo4j_service
        self.cache = cache if cache is not None else NullCache()

    async def get_food_detail(self, food_id: str) -> dict[str, Any]:
        """Retrieve a food with its region and ingredients.

        Args:
            food_id: The food identifier.

        Returns:
            Dictionary with food data. `region` is None and `ingredient_names`
            empty when the food has no such relations.

        Raises:
            NotFoundError: If the food does not exist.
        """
        food_id = require_text("food_id", food_id)
        key = food_cache_key(food_id)

        version = self.cache.version(key)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        query = """
        MATCH (f:Food {food_id: $food_id})
        OPTIONAL MATCH (f)-[:FROM_REGION]->(r:Region)
        OPTIONAL MATCH (f)-[:HAS_INGREDIENT]->(i:Ingredient)
        RETURN f.food_id AS food_id,
               f.name AS name,
               f.type AS type,
               f.description AS description,
               f.ingredients AS ingredients,
               f.price AS price,
               f.image_url AS image_url,
               coalesce(f.view_count, 0) AS view_count,
               head(collect(DISTINCT r.name)) AS region,
               collect(DISTINCT i.name) AS ingredient_names
        """

        food = await self.neo4j.query_one(query, food_id=food_id)
        if food is None:
            raise NotFoundError("food", food_id)

        food["view_count"] = max(0, int(food.get("view_count") or 0))
        food["ingredient_names"] = [name for name in food.get("ingredient_names") or [] if name]
        # A view recorded while this read was in flight makes the row stale
        self.cache.set(key, food, version=version)
        return food

    async def increment_view_count(self, food_id: str) -> int:
        """Increment a food's view counter.

        Args:
            food_id: The food identifier.

        Returns:
            The new view count.

        Raises:
            NotFoundError: If the food does not exist.
        """
        food_id = require_text("food_id", food_id)

        query = """
        MATCH (f:Food {food_id: $food_id})
        SET f.view_count = coalesce(f.view_count, 0) + 1
        RETURN f.view_count AS view_count
        """

        try:
            result = await self.neo4j.command(query, food_id=food_id)
        finally:
            self.cache.invalidate(food_cache_key(food_id))

        if result is None:
            raise NotFoundError("food", food_id)
        return int(result["view_count"])

    async def batch_increment_view_counts(self, food_ids: list[str]) -> int:
        """Increment view counters of several foods at once.

        Args:
            food_ids: Food identifiers. Unknown ids are skipped.

        Returns:
            Number of foods updated.
        """
        food_ids = list(dict.fromkeys(fid.strip() for fid in food_ids if fid and fid.strip()))
        if not food_ids:
            return 0

        query = """
        UNWIND $food_ids AS fid
        MATCH (f:Food {food_id: fid})
        SET f.view_count = coalesce(f.view_count, 0) + 1
        RETURN count(f) AS updated
        """

        try:
            result = await self.neo4j.command(query, food_ids=food_ids)
        finally:
            for food_id in food_ids:
                self.cache.invalidate(food_cache_key(food_id))

        updated = int(result["updated"]) if result else 0
        logger.info("Incremented view count for %d/%d foods", updated, len(food_ids))
        return updated

    async def get_view_count(self, food_id: str) -> int:
        """Get a food's view counter (0 when never viewed).

        Raises:
            NotFoundError: If the food does not exist.
        """
        food_id = require_text("food_id", food_id)

        query = """
        MATCH (f:Food {food_id: $food_id})
        RETURN coalesce(f.view_count, 0) AS view_count
        """

        row = await self.neo4j.query_one(query, food_id=food_id)
        if row is None:
            raise NotFoundError("food", food_id)
        return max(0, int(row.get("view_count") or 0))

    async def get_top_viewed_foods(self, limit: int = 10) -> list[dict[str, Any]]:
        """Get foods with at least one view, most viewed first.

        Args:
            limit: Number of foods to return (1-100).

        Returns:
            List of dictionaries with food_id, name, view_count and rank.
        """
        require_positive("limit", limit)
        limit = min(limit, MAX_LIMIT)

        query = """
        MATCH (f:Food)
        WHERE f.view_count > 0
        RETURN f.food_id AS food_id,
               f.name AS name,
               f.view_count AS view_count
        ORDER BY view_count DESC, name ASC
        LIMIT $limit
        """

        rows = await self.neo4j.query_all(query, limit=limit)
        return [
            {
                "food_id": row["food_id"],
                "name": row.get("name") or "",
                "view_count": int(row.get("view_count") or 0),
                "rank": index + 1,
            }
            for index, row in enumerate(rows[:limit])
        ]

    async def list_regions(self) -> list[dict[str, Any]]:
        """List all regions with the number of foods from each.

        Returns:
            List of dictionaries with name and food_count, by name.
        """
        query = """
        MATCH (r:Region)
        OPTIONAL MATCH (r)<-[:FROM_REGION]-(f:Food)
        RETURN r.name AS name, count(f) AS food_count
        ORDER BY name ASC
        LIMIT $limit
        """

        rows = await self.neo4j.query_all(query, limit=1000)
        return [
            {"name": row["name"], "food_count": int(row.get("food_count") or 0)}
            for row in rows
        ]
