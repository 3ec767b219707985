"""Engagement ranking — fixed-width top-N with placeholder padding."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import RedisError

from edurewards.ranking.oracles import WeightedScoreOracle, engagement_score
from edurewards.ranking.service import PLACEHOLDER, get_top_students, invalidate_top_students, rank_top
from edurewards.ranking.snapshot import EngagementRecord, build_snapshot
from edurewards.rewards.errors import OracleFailure

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _pool(size: int) -> list[EngagementRecord]:
    return [EngagementRecord(uid=f"s{i:02d}", points_balance=i * 10) for i in range(size)]


class StaticOracle:
    """Returns a canned ranking and records how often it was asked."""

    def __init__(self, ranking: list[str]) -> None:
        self.ranking = ranking
        self.calls = 0

    async def rank(self, snapshot, n):
        self.calls += 1
        return list(self.ranking)


class TestRankTop:
    @pytest.mark.asyncio
    async def test_small_pool_padded_with_placeholders(self):
        oracle = StaticOracle([])
        result = await rank_top(_pool(7), oracle, n=10)

        assert len(result) == 10
        assert result[:7] == [f"s{i:02d}" for i in range(7)]
        assert result[7:] == [PLACEHOLDER] * 3
        assert oracle.calls == 0

    @pytest.mark.asyncio
    async def test_empty_pool_all_placeholders(self):
        assert await rank_top([], StaticOracle([]), n=10) == [""] * 10

    @pytest.mark.asyncio
    async def test_pool_equal_to_n_skips_oracle(self):
        oracle = StaticOracle([])
        result = await rank_top(_pool(10), oracle, n=10)
        assert result == [f"s{i:02d}" for i in range(10)]
        assert oracle.calls == 0

    @pytest.mark.asyncio
    async def test_large_pool_returns_n_distinct_known_uids(self):
        pool = _pool(15)
        result = await rank_top(pool, WeightedScoreOracle(now=NOW), n=10)

        assert len(result) == 10
        assert len(set(result)) == 10
        assert set(result) <= {r.uid for r in pool}
        assert PLACEHOLDER not in result

    @pytest.mark.asyncio
    async def test_non_positive_n_rejected(self):
        with pytest.raises(ValueError):
            await rank_top(_pool(3), StaticOracle([]), n=0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "ranking",
        [
            pytest.param([f"s{i:02d}" for i in range(9)], id="too-short"),
            pytest.param([f"s{i:02d}" for i in range(11)], id="too-long"),
            pytest.param(["s00"] * 2 + [f"s{i:02d}" for i in range(2, 10)], id="duplicates"),
            pytest.param(["nobody"] + [f"s{i:02d}" for i in range(1, 10)], id="unknown-uid"),
            pytest.param([""] + [f"s{i:02d}" for i in range(1, 10)], id="placeholder"),
        ],
    )
    async def test_invalid_oracle_output_rejected(self, ranking):
        with pytest.raises(OracleFailure):
            await rank_top(_pool(15), StaticOracle(ranking), n=10)

    @pytest.mark.asyncio
    async def test_oracle_failure_propagates(self):
        oracle = AsyncMock()
        oracle.rank.side_effect = OracleFailure("down")
        with pytest.raises(OracleFailure):
            await rank_top(_pool(15), oracle, n=10)


class TestWeightedScoreOracle:
    def test_score_components(self):
        record = EngagementRecord(
            uid="a",
            points_balance=100,
            courses_completed=2,
            tests_taken=3,
            last_login=NOW - timedelta(days=10),
        )
        # 100 + 2*50 + 3*10 + (30 - 10)*2
        assert engagement_score(record, NOW) == pytest.approx(270.0)

    def test_stale_login_adds_nothing(self):
        record = EngagementRecord(uid="a", points_balance=5, last_login=NOW - timedelta(days=90))
        assert engagement_score(record, NOW) == pytest.approx(5.0)

    def test_naive_login_treated_as_utc(self):
        record = EngagementRecord(uid="a", last_login=(NOW - timedelta(days=29)).replace(tzinfo=None))
        assert engagement_score(record, NOW) == pytest.approx(2.0)

    @pytest.mark.asyncio
    async def test_orders_by_score_then_uid(self):
        pool = [
            EngagementRecord(uid="c", points_balance=50),
            EngagementRecord(uid="a", points_balance=50),
            EngagementRecord(uid="b", points_balance=80),
            EngagementRecord(uid="d", courses_completed=1),
        ]
        oracle = WeightedScoreOracle(now=NOW)
        assert await oracle.rank(pool, 3) == ["b", "a", "c"]

    @pytest.mark.asyncio
    async def test_deterministic(self):
        pool = _pool(20)
        oracle = WeightedScoreOracle(now=NOW)
        first = await oracle.rank(pool, 10)
        second = await oracle.rank(list(reversed(pool)), 10)
        assert first == second
        assert first[0] == "s19"


class TestTopStudents:
    @pytest.mark.asyncio
    async def test_snapshot_in_creation_order(self, db_session, make_user):
        for uid in ("zed", "amy", "bob"):
            await make_user(uid, points=10)

        snapshot = await build_snapshot(db_session)

        assert [r.uid for r in snapshot] == ["zed", "amy", "bob"]
        assert all(r.points_balance == 10 for r in snapshot)

    @pytest.mark.asyncio
    async def test_without_cache(self, db_session, make_user):
        for i in range(3):
            await make_user(f"u{i}", points=i)

        result = await get_top_students(db_session, None, WeightedScoreOracle(now=NOW), n=5)

        assert result == ["u0", "u1", "u2", "", ""]

    @pytest.mark.asyncio
    async def test_cache_hit_skips_ranking(self, db_session):
        redis = AsyncMock()
        redis.get.return_value = json.dumps(["cached", ""])
        oracle = StaticOracle([])

        result = await get_top_students(db_session, redis, oracle, n=2)

        assert result == ["cached", ""]
        redis.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_cache_miss_stores_ranking(self, db_session, make_user):
        await make_user("u1")
        redis = AsyncMock()
        redis.get.return_value = None

        result = await get_top_students(db_session, redis, WeightedScoreOracle(now=NOW), n=2, cache_ttl=60)

        assert result == ["u1", ""]
        redis.set.assert_awaited_once_with("leaderboard:top_students:2", json.dumps(["u1", ""]), ex=60)

    @pytest.mark.asyncio
    async def test_cache_errors_do_not_fail(self, db_session, make_user):
        await make_user("u1")
        redis = AsyncMock()
        redis.get.side_effect = RedisError("down")
        redis.set.side_effect = RedisError("down")

        result = await get_top_students(db_session, redis, WeightedScoreOracle(now=NOW), n=1)

        assert result == ["u1"]

    @pytest.mark.asyncio
    async def test_invalidate(self):
        redis = AsyncMock()
        await invalidate_top_students(redis, 10)
        redis.delete.assert_awaited_once_with("leaderboard:top_students:10")
        await invalidate_top_students(None, 10)
