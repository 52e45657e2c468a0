import asyncio

import pytest

from gourmet.errors import InvalidInputError, UpstreamQueryError
from gourmet.services.recommendation_service import (
    Recommendation,
    RecommendationService,
    age_gap_score,
    merge_recommendations,
    parse_categories,
    rank_score,
    two_hop_score,
)
from tests.conftest import FakeNeo4jService

pytestmark = pytest.mark.anyio


def rec(food_id, score, reason="test"):
    return Recommendation(food_id=food_id, food_name=f"Food {food_id}", reason=reason, score=score)


# =========================================================================
# Scoring helpers
# =========================================================================


def test_age_gap_score_buckets():
    assert age_gap_score(1) == 0.8
    assert age_gap_score(5) == 0.8
    assert age_gap_score(6) == 0.6
    assert age_gap_score(10) == 0.6
    assert age_gap_score(11) == 0.4


def test_rank_score_never_goes_negative():
    assert rank_score(0, 0.1) == 1.0
    assert rank_score(3, 0.1) == 0.7
    assert rank_score(15, 0.1) == 0.0
    assert rank_score(19, 0.05) == 0.05


def test_two_hop_score_priorities():
    assert two_hop_score(different_type=True, same_region=True) == 0.9
    assert two_hop_score(different_type=False, same_region=True) == 0.8
    assert two_hop_score(different_type=False, same_region=False) == 0.6


def test_parse_categories():
    assert parse_categories("món chính, món phụ,,") == ["món chính", "món phụ"]
    assert parse_categories(["soup", " soup ", ""]) == ["soup"]
    assert parse_categories(None) == []
    assert parse_categories("") == []


# =========================================================================
# Merge
# =========================================================================


def test_merge_of_disjoint_lists_keeps_scores():
    groups = [[rec("a", 0.8), rec("b", 0.4)], [rec("c", 1.0)], [rec("d", 0.6)]]

    merged = merge_recommendations(groups)

    assert {r.food_id: r.score for r in merged} == {"a": 0.8, "b": 0.4, "c": 1.0, "d": 0.6}
    assert [r.food_id for r in merged] == ["c", "a", "d", "b"]


def test_merge_boost_is_flat_from_first_occurrence():
    groups = [[rec("a", 0.4, reason="first")], [rec("a", 0.95, reason="second")]]

    [merged] = merge_recommendations(groups)

    assert merged.score == pytest.approx(min(1.0, 0.4 + 0.1))
    assert merged.reason == "first"


def test_merge_boost_is_capped_at_one():
    groups = [[rec("a", 0.95)], [rec("a", 0.5)], [rec("a", 0.5)]]

    [merged] = merge_recommendations(groups)

    assert merged.score == 1.0


def test_merge_does_not_mutate_inputs_and_limits_output():
    first = rec("a", 0.5)
    groups = [[first], [rec("a", 0.5)]] + [[rec(f"x{i}", 0.3)] for i in range(30)]

    merged = merge_recommendations(groups, limit=20)

    assert first.score == 0.5
    assert len(merged) == 20
    assert merged[0].food_id == "a"


# =========================================================================
# Strategies
# =========================================================================


async def test_age_based_scores_by_age_gap_and_dedupes_foods():
    neo4j = FakeNeo4jService(rows=[
        {"food_id": "f1", "food_name": "Phở", "user_age": 27},
        {"food_id": "f1", "food_name": "Phở", "user_age": 40},
        {"food_id": "f2", "food_name": "Bánh mì", "user_age": 33},
        {"food_id": "f3", "food_name": "Chè", "user_age": 60},
    ])

    recs = await RecommendationService(neo4j).foods_from_different_age_groups(25)

    assert [(r.food_id, r.score) for r in recs] == [("f1", 0.8), ("f2", 0.6), ("f3", 0.4)]
    assert recs[0].reason == "Liked by users aged 27"
    _, _, params = neo4j.calls[0]
    assert params["target_age"] == 25


async def test_age_based_rejects_negative_age():
    neo4j = FakeNeo4jService()

    with pytest.raises(InvalidInputError):
        await RecommendationService(neo4j).foods_from_different_age_groups(-1)

    assert neo4j.calls == []


async def test_category_region_scores_home_region_higher():
    neo4j = FakeNeo4jService(rows=[
        {"food_id": "f1", "food_name": "Bún bò", "food_type": "noodle", "region_names": ["Huế"]},
        {"food_id": "f2", "food_name": "Bún chả", "food_type": "noodle", "region_names": ["Hà Nội"]},
        {"food_id": "f3", "food_name": "Bún riêu", "food_type": "noodle", "region_names": []},
    ])

    recs = await RecommendationService(neo4j).foods_by_category_and_region("Hà Nội", ["noodle"])

    assert [(r.food_id, r.score) for r in recs] == [("f2", 1.0), ("f1", 0.7), ("f3", 0.7)]
    assert recs[0].reason == "noodle from Hà Nội"
    _, query, params = neo4j.calls[0]
    assert "f.type IN $categories" in query
    assert params["categories"] == ["noodle"]


async def test_empty_categories_fall_back_to_all_types():
    neo4j = FakeNeo4jService(rows=[
        {"food_id": "f1", "food_name": "Cơm tấm", "food_type": "rice", "region_names": ["Sài Gòn"]},
        {"food_id": "f2", "food_name": "Phở", "food_type": "noodle", "region_names": ["Hà Nội"]},
    ])

    recs = await RecommendationService(neo4j).foods_by_category_and_region("Hà Nội", [])

    assert len(recs) == 2
    _, query, _ = neo4j.calls[0]
    assert "$categories" not in query


async def test_most_viewed_respects_limit_and_rank_scores():
    rows = [{"food_id": f"f{i}", "food_name": f"Food {i}", "view_count": 100 - i} for i in range(20)]
    neo4j = FakeNeo4jService(rows=rows)

    recs = await RecommendationService(neo4j).most_viewed_foods(12)

    assert len(recs) == 12
    assert [r.score for r in recs[:3]] == [1.0, 0.9, 0.8]
    assert recs[-1].score == 0.0
    assert recs[0].reason == "Most viewed - Top 1"


@pytest.mark.parametrize("limit", [0, -3])
async def test_most_viewed_rejects_non_positive_limit(limit):
    neo4j = FakeNeo4jService()

    with pytest.raises(InvalidInputError):
        await RecommendationService(neo4j).most_viewed_foods(limit)

    assert neo4j.calls == []


async def test_food_type_statistics_coalesces_missing_values():
    neo4j = FakeNeo4jService(rows=[
        {"food_type": "noodle", "food_count": 4, "total_likes": 12, "total_views": 300, "average_rating": 4.333},
        {"food_type": "unknown", "food_count": 1, "total_likes": None, "total_views": None, "average_rating": None},
    ])

    stats = await RecommendationService(neo4j).food_type_statistics()

    assert stats[0].average_rating == 4.33
    assert stats[1].total_likes == 0
    assert stats[1].average_rating == 0.0


async def test_popular_by_age_group_scores_decay_slowly():
    rows = [{"food_id": f"f{i}", "food_name": f"Food {i}", "user_count": 30 - i} for i in range(3)]
    neo4j = FakeNeo4jService(rows=rows)

    recs = await RecommendationService(neo4j).popular_foods_by_age_group()

    assert [r.score for r in recs] == [1.0, 0.95, 0.9]
    assert recs[0].reason == "Popular with 30 users"


async def test_two_hop_scores_and_excludes_source():
    neo4j = FakeNeo4jService(rows=[
        {"food_id": "f2", "food_name": "Bánh cuốn", "food_type": "snack", "source_type": "noodle", "same_region": True},
        {"food_id": "f3", "food_name": "Bún chả", "food_type": "noodle", "source_type": "noodle", "same_region": True},
        {"food_id": "f4", "food_name": "Mì Quảng", "food_type": "noodle", "source_type": "noodle", "same_region": False},
        {"food_id": "f1", "food_name": "Phở", "food_type": "noodle", "source_type": "noodle", "same_region": True},
    ])

    recs = await RecommendationService(neo4j).foods_within_two_steps("Phở")

    assert [(r.food_id, r.score) for r in recs] == [("f2", 0.9), ("f3", 0.8), ("f4", 0.6)]
    assert all(r.reason == "Related to Phở" for r in recs)


async def test_two_hop_unknown_food_is_empty():
    recs = await RecommendationService(FakeNeo4jService()).foods_within_two_steps("Nothing")
    assert recs == []


async def test_influential_users():
    neo4j = FakeNeo4jService(rows=[
        {"user_id": "u1", "user_name": "Lan", "region": "Huế", "age": 30, "action_count": 42},
        {"user_id": "u2", "user_name": "Minh", "region": None, "age": None, "action_count": None},
    ])

    users = await RecommendationService(neo4j).most_influential_users(2)

    assert [(u.user_id, u.action_count) for u in users] == [("u1", 42), ("u2", 0)]


# =========================================================================
# Personalized composer
# =========================================================================


def patch_strategies(service, age=None, category=None, popular=None, viewed=None):
    async def constant(value):
        if isinstance(value, Exception):
            raise value
        return value or []

    service.foods_from_different_age_groups = lambda *a, **k: constant(age)
    service.foods_by_category_and_region = lambda *a, **k: constant(category)
    service.popular_foods_by_age_group = lambda *a, **k: constant(popular)
    service.most_viewed_foods = lambda *a, **k: constant(viewed)


async def test_personalized_merges_and_boosts_overlaps():
    service = RecommendationService(FakeNeo4jService())
    patch_strategies(
        service,
        age=[rec("a", 0.6), rec("b", 0.4)],
        category=[rec("a", 1.0), rec("c", 0.7)],
        popular=[rec("a", 0.95)],
        viewed=[rec("d", 1.0)],
    )

    recs = await service.personalized_recommendations("u1", 25, "Huế", ["noodle"])

    scores = {r.food_id: r.score for r in recs}
    assert scores["a"] == pytest.approx(0.8)
    assert scores["b"] == 0.4
    assert scores["c"] == 0.7
    assert scores["d"] == 1.0
    assert [r.food_id for r in recs][:2] == ["d", "a"]


async def test_personalized_degrades_when_a_strategy_fails():
    service = RecommendationService(FakeNeo4jService())
    patch_strategies(
        service,
        age=UpstreamQueryError("timed out"),
        category=[rec("c", 0.7)],
        popular=RuntimeError("boom"),
        viewed=[rec("d", 1.0)],
    )

    recs = await service.personalized_recommendations("u1", 25, "Huế", [])

    assert [r.food_id for r in recs] == ["d", "c"]


async def test_personalized_with_every_strategy_failing_is_empty():
    service = RecommendationService(FakeNeo4jService(error=UpstreamQueryError("down")))

    recs = await service.personalized_recommendations("u1", 25, "Huế", [])

    assert recs == []


async def test_personalized_runs_strategies_concurrently():
    service = RecommendationService(FakeNeo4jService())
    started = []
    release = asyncio.Event()

    def gated(name):
        async def strategy(*args, **kwargs):
            started.append(name)
            if len(started) == 4:
                release.set()
            await asyncio.wait_for(release.wait(), timeout=1)
            return [rec(name, 0.5)]

        return strategy

    service.foods_from_different_age_groups = gated("age")
    service.foods_by_category_and_region = gated("category")
    service.popular_foods_by_age_group = gated("popular")
    service.most_viewed_foods = gated("viewed")

    recs = await service.personalized_recommendations("u1", 25, "Huế", [])

    assert sorted(started) == ["age", "category", "popular", "viewed"]
    assert len(recs) == 4


async def test_personalized_end_to_end_scores_are_bounded():
    neo4j = FakeNeo4jService(responses={
        "u.age <> $target_age": [
            {"food_id": "f1", "food_name": "Phở", "user_age": 24},
            {"food_id": "f2", "food_name": "Bún", "user_age": 50},
        ],
        "region_names": [
            {"food_id": "f1", "food_name": "Phở", "food_type": "noodle", "region_names": ["Hà Nội"]},
        ],
        "count(DISTINCT u) AS user_count": [
            {"food_id": "f1", "food_name": "Phở", "user_count": 9},
            {"food_id": "f3", "food_name": "Chè", "user_count": 4},
        ],
        "coalesce(f.view_count, 0) AS view_count": [
            {"food_id": "f1", "food_name": "Phở", "view_count": 500},
        ],
    })

    recs = await RecommendationService(neo4j).personalized_recommendations(
        "u1", 25, "Hà Nội", ["noodle"]
    )

    assert recs[0].food_id == "f1"
    assert recs[0].score == 1.0
    assert all(0.0 <= r.score <= 1.0 for r in recs)
    assert len(neo4j.calls) == 4


async def test_personalized_rejects_blank_user():
    with pytest.raises(InvalidInputError):
        await RecommendationService(FakeNeo4jService()).personalized_recommendations("", 25, "Huế")


# =========================================================================
# Query shape
# =========================================================================


async def test_age_based_collapses_to_one_row_per_food_before_limit():
    neo4j = FakeNeo4jService()

    await RecommendationService(neo4j).foods_from_different_age_groups(30)

    _, query, params = neo4j.calls[0]
    assert params["limit"] == 20
    assert query.index("collect(user_age)[0]") < query.index("LIMIT $limit")


async def test_two_hop_ranks_by_score_before_limit():
    neo4j = FakeNeo4jService()

    await RecommendationService(neo4j).foods_within_two_steps("Phở")

    _, query, _ = neo4j.calls[0]
    assert query.index("ORDER BY score DESC") < query.index("LIMIT $limit")
