"""Ingredient-overlap similarity between a food and its neighbours.

Neighbours are foods reachable through a shared ingredient
(Food -> Ingredient -> Food). Each neighbour is scored by the number
of distinct shared ingredients plus a bonus when the food type matches.
"""

import logging
from dataclasses import dataclass, field

from gourmet.errors import NotFoundError, require_text
from gourmet.services.neo4j_service import Neo4jService

logger = logging.getLogger(__name__)

# Maximum number of similar foods returned
MAX_SIMILAR_FOODS = 20

INGREDIENT_WEIGHT = 0.2
SAME_TYPE_BONUS = 0.3


@dataclass
class SimilarFood:
    """A neighbouring food with its similarity score."""

    food_id: str
    food_name: str
    similarity_score: float


@dataclass
class SimilarityMatrix:
    """Similarity of one food to its ingredient-sharing neighbours."""

    food_id: str
    food_name: str
    similar_foods: list[SimilarFood] = field(default_factory=list)


def similarity_score(common_ingredients: int, same_type: bool) -> float:
    """Score a neighbour, capped at 1.0."""
    score = common_ingredients * INGREDIENT_WEIGHT
    if same_type:
        score += SAME_TYPE_BONUS
    return min(1.0, max(0.0, score))


class SimilarityEngine:
    """Builds ingredient-based similarity matrices."""

    def __init__(self, neo4j_service: Neo4jService):
        self.neo4j = neo4j_service

    async def similar_foods(self, food_id: str) -> SimilarityMatrix:
        """Find foods sharing ingredients with the given food.

        Args:
            food_id: Identifier of the source food.

        Returns:
            SimilarityMatrix with at most 20 neighbours, best first.

        Raises:
            NotFoundError: If the food does not exist, has no ingredients,
                or shares no ingredient with any other food.
        """
        food_id = require_text("food_id", food_id)

        query = """
        MATCH (source:Food {food_id: $food_id})-[:HAS_INGREDIENT]->(i:Ingredient)
              <-[:HAS_INGREDIENT]-(other:Food)
        WHERE other.food_id <> source.food_id
        WITH source, other, count(DISTINCT i) AS common_ingredients
        WITH source, other, common_ingredients,
             common_ingredients * $ingredient_weight
             + CASE
                   WHEN source.type IS NOT NULL AND source.type = other.type
                   THEN $same_type_bonus
                   ELSE 0.0
               END AS score
        RETURN source.food_id AS food_id,
               source.name AS food_name,
               source.type AS food_type,
               other.food_id AS similar_food_id,
               other.name AS similar_food_name,
               other.type AS similar_food_type,
               common_ingredients
        ORDER BY score DESC, similar_food_name ASC
        LIMIT $limit
        """

        rows = await self.neo4j.query_all(
            query,
            limit=MAX_SIMILAR_FOODS,
            food_id=food_id,
            ingredient_weight=INGREDIENT_WEIGHT,
            same_type_bonus=SAME_TYPE_BONUS,
        )
        if not rows:
            raise NotFoundError("food", food_id)

        source = rows[0]
        similar: dict[str, SimilarFood] = {}
        for row in rows:
            neighbour_id = row["similar_food_id"]
            if neighbour_id == food_id or neighbour_id in similar:
                continue
            same_type = (
                row.get("food_type") is not None
                and row.get("food_type") == row.get("similar_food_type")
            )
            score = similarity_score(int(row.get("common_ingredients") or 0), same_type)
            similar[neighbour_id] = SimilarFood(
                food_id=neighbour_id,
                food_name=row.get("similar_food_name") or "",
                similarity_score=round(score, 2),
            )

        ranked = sorted(similar.values(), key=lambda s: s.similarity_score, reverse=True)
        logger.info(
            "Food %s has %d ingredient-sharing neighbours", food_id, len(ranked)
        )

        return SimilarityMatrix(
            food_id=source["food_id"],
            food_name=source.get("food_name") or "",
            similar_foods=ranked[:MAX_SIMILAR_FOODS],
        )
