"""포트폴리오 어드바이스 캐시 저장소.

클레임 없이 조회 → (미스) 생성 → 중복 무시 INSERT. 동시 미스 시 중복 생성은 허용.
"""
import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import select, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import PersistenceError
from models.portfolio_advice import PortfolioAdvice, SYSTEM_USER_ID
from services.generation_cache import dialect_insert

logger = logging.getLogger(__name__)

ADVICE_INDEX_ELEMENTS = ["regime_asof_date", "payload_hash", "model", "prompt_version"]


class AdviceCacheStore:
    """llm_portfolio_advice 테이블 접근."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lookup(
        self,
        regime_asof_date: date,
        payload_hash: str,
        model: str,
        prompt_version: str,
    ) -> Optional[PortfolioAdvice]:
        stmt = (
            select(PortfolioAdvice)
            .where(and_(
                PortfolioAdvice.regime_asof_date == regime_asof_date,
                PortfolioAdvice.payload_hash == payload_hash,
                PortfolioAdvice.model == model,
                PortfolioAdvice.prompt_version == prompt_version,
            ))
            .limit(1)
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Advice cache lookup failed: {e}") from e
        return result.scalars().first()

    async def insert_ignore_duplicate(
        self,
        regime_asof_date: date,
        payload_hash: str,
        model: str,
        prompt_version: str,
        payload: dict,
        response: dict,
    ) -> bool:
        """최선 노력 저장. 새 행이 들어가면 True, 중복이거나 저장 실패면 False.

        저장 실패는 요청을 실패시키지 않는다 (다음 요청이 다시 생성할 뿐).
        """
        insert = dialect_insert(self.db)
        stmt = (
            insert(PortfolioAdvice)
            .values(
                user_id=SYSTEM_USER_ID,
                regime_asof_date=regime_asof_date,
                payload_hash=payload_hash,
                model=model,
                prompt_version=prompt_version,
                payload=payload,
                response=response,
                created_at=datetime.utcnow(),
            )
            .on_conflict_do_nothing(index_elements=ADVICE_INDEX_ELEMENTS)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"어드바이스 캐시 저장 실패: {e}")
            return False

        if result.rowcount > 0:
            logger.info(f"어드바이스 캐시 저장: {regime_asof_date} {payload_hash[:12]}")
            return True
        logger.info(f"어드바이스 캐시 중복 (다른 요청이 먼저 저장): {payload_hash[:12]}")
        return False
