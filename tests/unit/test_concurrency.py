"""Racing awards and redemptions, each on its own connection."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select

from edurewards.db.models import InteractionRecord, RedemptionRecord
from edurewards.rewards.errors import InsufficientBalance
from edurewards.rewards.interactions import get_content_stats
from edurewards.rewards.ledger import award_follow_bonus, award_reaction, award_watch, get_balance
from edurewards.rewards.redemption import redeem
from tests.conftest import create_user

RACERS = 6


async def _count(factory, model) -> int:
    async with factory() as db:
        return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def _balance(factory, uid: str) -> int:
    async with factory() as db:
        return await get_balance(db, uid)


class TestConcurrentAwards:
    @pytest.mark.asyncio
    async def test_same_pair_awarded_once(self, file_session_factory):
        async with file_session_factory() as db:
            await create_user(db, "u1")

        async def _watch() -> int:
            async with file_session_factory() as db:
                return await award_watch(db, "u1", "video-1")

        results = await asyncio.gather(*(_watch() for _ in range(RACERS)))

        assert sorted(results) == [0] * (RACERS - 1) + [5]
        assert await _balance(file_session_factory, "u1") == 5
        assert await _count(file_session_factory, InteractionRecord) == 1

    @pytest.mark.asyncio
    async def test_mixed_kinds_on_same_pair_awarded_once(self, file_session_factory):
        async with file_session_factory() as db:
            await create_user(db, "u1")

        async def _award(kind: str) -> int:
            async with file_session_factory() as db:
                if kind == "watch":
                    return await award_watch(db, "u1", "video-1")
                return await award_reaction(db, "u1", "video-1", kind)

        results = await asyncio.gather(*(_award(k) for k in ("watch", "like", "dislike", "like")))

        assert sum(results) == 5
        assert await _balance(file_session_factory, "u1") == 5
        async with file_session_factory() as db:
            stats = await get_content_stats(db, "video-1")
        assert stats.watches + stats.likes + stats.dislikes == 1

    @pytest.mark.asyncio
    async def test_follow_bonus_once(self, file_session_factory):
        async with file_session_factory() as db:
            await create_user(db, "u1")

        async def _follow() -> int:
            async with file_session_factory() as db:
                return await award_follow_bonus(db, "u1", "gsc")

        results = await asyncio.gather(*(_follow() for _ in range(RACERS)))

        assert sorted(results) == [0] * (RACERS - 1) + [10]
        assert await _balance(file_session_factory, "u1") == 10


class TestConcurrentRedemption:
    @pytest.mark.asyncio
    async def test_one_redemption_at_threshold(self, file_session_factory):
        async with file_session_factory() as db:
            await create_user(db, "u1", points=1000)

        async def _redeem():
            async with file_session_factory() as db:
                return await redeem(db, "u1", "03001234567", user_name="Asha", user_email="a@example.com")

        results = await asyncio.gather(_redeem(), _redeem(), return_exceptions=True)

        failures = [r for r in results if isinstance(r, BaseException)]
        assert len(failures) == 1
        assert isinstance(failures[0], InsufficientBalance)
        assert await _balance(file_session_factory, "u1") == 0
        assert await _count(file_session_factory, RedemptionRecord) == 1
