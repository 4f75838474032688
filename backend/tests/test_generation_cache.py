"""인사이트 캐시 저장소 / 클레임 테스트."""
import asyncio
from dataclasses import replace
from datetime import date

import pytest

from core.exceptions import PersistenceError
from models.indicator_insight import InsightStatus
from services.generation_cache import ClaimArbiter, InsightCacheStore, InsightKey

DAY1 = date(2026, 3, 1)
DAY2 = date(2026, 3, 2)
KEY = InsightKey(code="US_10Y", asof_date=DAY1, fingerprint="f" * 32, model="m", prompt_version="v2")


class TestInsightCacheStore:
    """pending INSERT / 상태 기록 / 조회."""

    def test_insert_pending_then_conflict(self, session_maker):
        """같은 클레임 범위 두 번째 INSERT 는 오류가 아니라 None."""

        async def scenario():
            async with session_maker() as db:
                store = InsightCacheStore(db)
                first = await store.try_insert_pending(KEY)
                second = await store.try_insert_pending(KEY)
                return first, second

        first, second = asyncio.run(scenario())
        assert first is not None
        assert first.status == InsightStatus.PENDING.value
        assert second is None

    def test_lookup_ignores_pending_and_error(self, session_maker):
        """done 이 아닌 기록은 캐시 히트가 아니다."""

        async def scenario():
            async with session_maker() as db:
                store = InsightCacheStore(db)
                await store.try_insert_pending(KEY)
                pending_hit = await store.lookup(KEY.code, KEY.fingerprint, "m", "v2")

                await store.commit(KEY, InsightStatus.ERROR, {"error_message": "boom"})
                error_hit = await store.lookup(KEY.code, KEY.fingerprint, "m", "v2")
                return pending_hit, error_hit

        pending_hit, error_hit = asyncio.run(scenario())
        assert pending_hit is None
        assert error_hit is None

    def test_lookup_matches_model_and_prompt_version(self, session_maker):
        async def scenario():
            async with session_maker() as db:
                store = InsightCacheStore(db)
                await store.try_insert_pending(KEY)
                await store.commit(KEY, InsightStatus.DONE, {"headline": "A", "model": "m", "prompt_version": "v2"})
                return (
                    await store.lookup(KEY.code, KEY.fingerprint, "m", "v2"),
                    await store.lookup(KEY.code, KEY.fingerprint, "other-model", "v2"),
                    await store.lookup(KEY.code, KEY.fingerprint, "m", "v3"),
                    await store.lookup(KEY.code, "0" * 32, "m", "v2"),
                )

        hit, other_model, other_prompt, other_fp = asyncio.run(scenario())
        assert hit is not None and hit.headline == "A"
        assert other_model is None
        assert other_prompt is None
        assert other_fp is None

    def test_commit_is_idempotent(self, session_maker):
        """같은 결과를 다시 기록해도 행은 하나, 내용 동일."""

        async def scenario():
            async with session_maker() as db:
                store = InsightCacheStore(db)
                await store.try_insert_pending(KEY)
                values = {"headline": "A", "confidence": 0.6}
                await store.commit(KEY, InsightStatus.DONE, values)
                return await store.commit(KEY, InsightStatus.DONE, values)

        row = asyncio.run(scenario())
        assert row.status == InsightStatus.DONE.value
        assert row.headline == "A"
        assert row.confidence == 0.6

    def test_commit_missing_row(self, session_maker):
        """클레임하지 않은 키에 기록하면 PersistenceError."""

        async def scenario():
            async with session_maker() as db:
                await InsightCacheStore(db).commit(KEY, InsightStatus.DONE, {"headline": "A"})

        with pytest.raises(PersistenceError):
            asyncio.run(scenario())

    def test_commit_rejects_pending(self, session_maker):
        async def scenario():
            async with session_maker() as db:
                await InsightCacheStore(db).commit(KEY, InsightStatus.PENDING, {})

        with pytest.raises(ValueError):
            asyncio.run(scenario())


class TestClaimArbiter:
    """조건부 INSERT 기반 단일 작성자 락."""

    def test_concurrent_claims_single_winner(self, session_maker):
        """N개 동시 클레임 중 정확히 하나만 성공."""

        async def claim_once():
            async with session_maker() as db:
                return await ClaimArbiter(InsightCacheStore(db)).try_claim(KEY)

        async def scenario():
            return await asyncio.gather(*(claim_once() for _ in range(8)))

        results = asyncio.run(scenario())
        winners = [r for r in results if r.claimed]
        losers = [r for r in results if not r.claimed]
        assert len(winners) == 1
        assert len(losers) == 7
        for loser in losers:
            assert loser.record is not None
            assert loser.record.status == InsightStatus.PENDING.value

    def test_new_window_not_blocked_by_stale_pending(self, session_maker):
        """이전 윈도우의 pending 행은 새 윈도우 클레임을 막지 않는다."""

        async def scenario():
            async with session_maker() as db:
                arbiter = ClaimArbiter(InsightCacheStore(db))
                stale = await arbiter.try_claim(KEY)
                blocked = await arbiter.try_claim(KEY)
                next_day = replace(KEY, asof_date=DAY2)
                fresh = await arbiter.try_claim(next_day)
                return stale, blocked, fresh

        stale, blocked, fresh = asyncio.run(scenario())
        assert stale.claimed
        assert not blocked.claimed
        assert fresh.claimed
        assert fresh.record.asof_date == DAY2

    def test_different_fingerprint_same_day(self, session_maker):
        """같은 날이라도 데이터가 바뀌면 새 클레임 가능."""

        async def scenario():
            async with session_maker() as db:
                arbiter = ClaimArbiter(InsightCacheStore(db))
                await arbiter.try_claim(KEY)
                return await arbiter.try_claim(replace(KEY, fingerprint="e" * 32))

        assert asyncio.run(scenario()).claimed

    def test_prompt_or_model_change_same_day(self, session_maker):
        """같은 날 같은 데이터라도 프롬프트 버전/모델이 다르면 기존 done 행에 막히지 않는다."""

        async def scenario():
            async with session_maker() as db:
                store = InsightCacheStore(db)
                arbiter = ClaimArbiter(store)
                await arbiter.try_claim(KEY)
                await store.commit(KEY, InsightStatus.DONE, {"headline": "A"})
                new_prompt = await arbiter.try_claim(replace(KEY, prompt_version="v3"))
                new_model = await arbiter.try_claim(replace(KEY, model="m2"))
                old = await store.get(KEY)
                return new_prompt, new_model, old

        new_prompt, new_model, old = asyncio.run(scenario())
        assert new_prompt.claimed
        assert new_prompt.record.prompt_version == "v3"
        assert new_prompt.record.status == InsightStatus.PENDING.value
        assert new_model.claimed
        assert new_model.record.model == "m2"
        assert old.status == InsightStatus.DONE.value
        assert old.headline == "A"
