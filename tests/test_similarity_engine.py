import pytest

from gourmet.errors import InvalidInputError, NotFoundError
from gourmet.services.similarity_engine import SimilarityEngine, similarity_score
from tests.conftest import FakeNeo4jService

pytestmark = pytest.mark.anyio


def neighbour(similar_id, common, similar_type="noodle", name=None):
    return {
        "food_id": "f1",
        "food_name": "Phở bò",
        "food_type": "noodle",
        "similar_food_id": similar_id,
        "similar_food_name": name or f"Food {similar_id}",
        "similar_food_type": similar_type,
        "common_ingredients": common,
    }


def test_similarity_score_three_shared_same_type():
    assert similarity_score(3, True) == pytest.approx(0.9)


def test_similarity_score_is_capped():
    assert similarity_score(10, True) == 1.0
    assert similarity_score(5, False) == 1.0
    assert similarity_score(1, False) == pytest.approx(0.2)


async def test_same_type_food_with_three_shared_ingredients():
    neo4j = FakeNeo4jService(rows=[neighbour("f2", 3)])

    matrix = await SimilarityEngine(neo4j).similar_foods("f1")

    assert matrix.food_id == "f1"
    assert matrix.food_name == "Phở bò"
    assert [s.food_id for s in matrix.similar_foods] == ["f2"]
    assert matrix.similar_foods[0].similarity_score == 0.9


async def test_source_food_is_never_included():
    neo4j = FakeNeo4jService(rows=[neighbour("f1", 4), neighbour("f2", 1)])

    matrix = await SimilarityEngine(neo4j).similar_foods("f1")

    assert "f1" not in [s.food_id for s in matrix.similar_foods]


async def test_type_bonus_can_outrank_more_shared_ingredients():
    neo4j = FakeNeo4jService(rows=[
        neighbour("f2", 3, similar_type="rice"),
        neighbour("f3", 2, similar_type="noodle"),
    ])

    matrix = await SimilarityEngine(neo4j).similar_foods("f1")

    assert [s.food_id for s in matrix.similar_foods] == ["f3", "f2"]
    assert [s.similarity_score for s in matrix.similar_foods] == [0.7, 0.6]


async def test_result_is_capped_at_twenty_and_bounded():
    rows = [neighbour(f"n{i}", (i % 6) + 1, similar_type="soup" if i % 2 else "noodle") for i in range(40)]
    neo4j = FakeNeo4jService(rows=rows)

    matrix = await SimilarityEngine(neo4j).similar_foods("f1")

    assert len(matrix.similar_foods) == 20
    scores = [s.similarity_score for s in matrix.similar_foods]
    assert scores == sorted(scores, reverse=True)
    assert all(0.0 <= s <= 1.0 for s in scores)


async def test_no_neighbours_raises_not_found():
    with pytest.raises(NotFoundError) as exc_info:
        await SimilarityEngine(FakeNeo4jService()).similar_foods("missing")

    assert exc_info.value.code == "FOOD_NOT_FOUND"


async def test_blank_food_id_is_rejected_before_query():
    neo4j = FakeNeo4jService()

    with pytest.raises(InvalidInputError):
        await SimilarityEngine(neo4j).similar_foods("  ")

    assert neo4j.calls == []


async def test_neighbours_are_ranked_by_score_before_the_row_limit():
    neo4j = FakeNeo4jService(rows=[neighbour("f2", 1)])

    await SimilarityEngine(neo4j).similar_foods("f1")

    _, query, params = neo4j.calls[0]
    assert query.index("ORDER BY score DESC") < query.index("LIMIT $limit")
    assert params["same_type_bonus"] == 0.3
    assert params["ingredient_weight"] == 0.2
    assert params["limit"] == 20
