"""지표 인사이트 생성 캐시 저장소 + 클레임(생성 락).

락은 애플리케이션 수준 check-then-insert가 아니라
유니크 제약 기반 INSERT ... ON CONFLICT DO NOTHING 한 번으로 결정된다.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from sqlalchemy import select, update, and_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import PersistenceError
from models.indicator_insight import IndicatorInsight, InsightStatus

logger = logging.getLogger(__name__)

CLAIM_INDEX_ELEMENTS = ["code", "asof_date", "data_fingerprint", "model", "prompt_version"]


@dataclass(frozen=True)
class InsightKey:
    """클레임 범위: 지표 코드 + 생성 윈도우(SGT 날짜) + 데이터 지문 + 모델 + 프롬프트 버전.

    모델이나 프롬프트 버전이 바뀌면 같은 날 같은 데이터라도 별도 기록이다.
    """
    code: str
    asof_date: date
    fingerprint: str
    model: str
    prompt_version: str

    def __str__(self):
        return (
            f"{self.code}@{self.asof_date.isoformat()}#{self.fingerprint[:8]}"
            f"/{self.model}/{self.prompt_version}"
        )


def dialect_insert(session: AsyncSession):
    """세션 dialect에 맞는 INSERT 구성자 (ON CONFLICT 지원)."""
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        return sqlite_insert
    return pg_insert


class InsightCacheStore:
    """indicator_insights_daily 테이블 접근."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _key_clause(self, key: InsightKey):
        return and_(
            IndicatorInsight.code == key.code,
            IndicatorInsight.asof_date == key.asof_date,
            IndicatorInsight.data_fingerprint == key.fingerprint,
            IndicatorInsight.model == key.model,
            IndicatorInsight.prompt_version == key.prompt_version,
        )

    async def lookup(
        self,
        code: str,
        fingerprint: str,
        model: str,
        prompt_version: str,
    ) -> Optional[IndicatorInsight]:
        """같은 지문/모델/프롬프트 버전의 done 기록 조회 (윈도우 무관).

        pending/error 기록은 캐시 히트로 반환하지 않는다.
        """
        stmt = (
            select(IndicatorInsight)
            .where(and_(
                IndicatorInsight.code == code,
                IndicatorInsight.data_fingerprint == fingerprint,
                IndicatorInsight.model == model,
                IndicatorInsight.prompt_version == prompt_version,
                IndicatorInsight.status == InsightStatus.DONE.value,
            ))
            .order_by(IndicatorInsight.updated_at.desc())
            .limit(1)
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cache lookup failed for {code}: {e}") from e
        return result.scalars().first()

    async def get(self, key: InsightKey) -> Optional[IndicatorInsight]:
        """클레임 범위의 현재 기록 (상태 무관)."""
        # 다른 요청이 갱신했을 수 있으므로 identity map 값 대신 DB 값으로 덮어쓴다
        stmt = (
            select(IndicatorInsight)
            .where(self._key_clause(key))
            .limit(1)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Cache read failed for {key}: {e}") from e
        return result.scalars().first()

    async def try_insert_pending(
        self,
        key: InsightKey,
        data_latest_date: Optional[date] = None,
    ) -> Optional[IndicatorInsight]:
        """pending 행 INSERT 시도.

        Returns:
            새로 만든 행. 같은 클레임 범위의 행이 이미 있으면 None (오류 아님).

        Raises:
            PersistenceError: DB 오류 (충돌과 구분됨)
        """
        now = datetime.utcnow()
        insert = dialect_insert(self.db)
        stmt = (
            insert(IndicatorInsight)
            .values(
                code=key.code,
                asof_date=key.asof_date,
                data_fingerprint=key.fingerprint,
                data_latest_date=data_latest_date,
                status=InsightStatus.PENDING.value,
                model=key.model,
                prompt_version=key.prompt_version,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=CLAIM_INDEX_ELEMENTS)
            .returning(IndicatorInsight.id)
        )
        try:
            result = await self.db.execute(stmt)
            inserted_id = result.scalar_one_or_none()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Failed to insert lock for {key}: {e}") from e

        if inserted_id is None:
            return None
        return await self.db.get(IndicatorInsight, inserted_id)

    async def commit(
        self,
        key: InsightKey,
        status: InsightStatus,
        values: dict[str, Any],
    ) -> IndicatorInsight:
        """클레임한 행에 최종 상태 기록. 재시도해도 같은 결과로 덮어쓴다.

        Raises:
            PersistenceError: DB 오류, 또는 대상 행이 없음 (정합성 오류)
        """
        if status == InsightStatus.PENDING:
            raise ValueError("commit() only writes terminal states")

        payload = dict(values)
        payload["status"] = status.value
        payload["updated_at"] = datetime.utcnow()

        stmt = (
            update(IndicatorInsight)
            .where(self._key_clause(key))
            .values(**payload)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                await self.db.rollback()
                raise PersistenceError(f"Claimed insight row missing for {key}")
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError(f"Failed to save insight for {key}: {e}") from e

        row = await self.get(key)
        if row is None:
            raise PersistenceError(f"Claimed insight row missing for {key}")
        return row


@dataclass
class ClaimResult:
    claimed: bool
    record: Optional[IndicatorInsight]


class ClaimArbiter:
    """조건부 INSERT를 단일 작성자 락으로 변환.

    동시 요청 중 정확히 하나만 claimed=True 를 받고 생성/저장 책임을 진다.
    나머지는 기존 행의 현재 상태(보통 pending)를 받아 그대로 응답하고 폴링에 맡긴다.
    """

    def __init__(self, store: InsightCacheStore):
        self.store = store

    async def try_claim(
        self,
        key: InsightKey,
        data_latest_date: Optional[date] = None,
    ) -> ClaimResult:
        record = await self.store.try_insert_pending(
            key, data_latest_date=data_latest_date
        )
        if record is not None:
            logger.info(f"인사이트 생성 락 획득: {key}")
            return ClaimResult(claimed=True, record=record)

        existing = await self.store.get(key)
        logger.info(
            f"인사이트 생성 락 선점됨: {key} "
            f"(status={existing.status if existing else 'unknown'})"
        )
        return ClaimResult(claimed=False, record=existing)
