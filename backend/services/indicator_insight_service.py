"""지표 인사이트 요청 처리.

CHECK_FRESHNESS → CACHE_HIT | CLAIMING
CLAIMING → CLAIMED | BLOCKED
CLAIMED → GENERATING → PERSISTING → RETURN (성공/실패 모두 종료)
BLOCKED → RETURN (기존 행 상태, 보통 pending → 클라이언트가 폴링)
"""
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from core.exceptions import (
    ConfigurationError,
    GenerationError,
    IndicatorNotFoundError,
    UpstreamDataError,
)
from core.timezone import current_window, window_closes_at
from integrations.llm import LLMClient
from models.indicator_insight import InsightStatus
from services.fingerprint import indicator_fingerprint
from services.generation_cache import ClaimArbiter, InsightCacheStore, InsightKey
from services.insight_generator import IndicatorInsightGenerator
from services.market_data import MarketDataSource, history_limit_for
from services.result_persister import ResultPersister

logger = logging.getLogger(__name__)


class InsightOutcome(str, Enum):
    CACHE_HIT = "cache_hit"
    CLAIMED = "claimed"
    BLOCKED = "blocked"


@dataclass
class InsightResponse:
    outcome: InsightOutcome
    body: dict


def _parse_date(value) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


class IndicatorInsightService:
    """지표 1건에 대한 인사이트 조회/생성."""

    def __init__(
        self,
        db: AsyncSession,
        market_data: MarketDataSource,
        llm: LLMClient,
        settings: Settings,
        today: Callable[[], date] = current_window,
    ):
        self.market_data = market_data
        self.llm = llm
        self.settings = settings
        self._today = today

        self.store = InsightCacheStore(db)
        self.arbiter = ClaimArbiter(self.store)
        self.persister = ResultPersister(self.store)
        self.generator = IndicatorInsightGenerator(
            llm, significant_figures=settings.prompt_significant_figures
        )

    @property
    def model(self) -> str:
        return self.llm.model

    @property
    def prompt_version(self) -> str:
        return self.settings.insight_prompt_version

    def _ensure_configured(self):
        if not self.market_data.is_configured or not self.llm.is_configured:
            raise ConfigurationError("Missing configuration")

    async def get_insight(self, code: str) -> InsightResponse:
        """인사이트 요청 1회 처리. 항상 응답으로 종료된다.

        Raises:
            ConfigurationError: 자격 증명 미설정
            IndicatorNotFoundError: 지표 코드 없음
            UpstreamDataError: 피처 조회 실패 (클레임 전)
            PersistenceError: 캐시 저장소 오류
        """
        self._ensure_configured()

        # CHECK_FRESHNESS
        features = await self.market_data.get_indicator_features(code)
        if not features:
            raise IndicatorNotFoundError(code)

        fingerprint = indicator_fingerprint(features)
        cached = await self.store.lookup(code, fingerprint, self.model, self.prompt_version)
        if cached is not None:
            logger.info(f"인사이트 캐시 히트: {code} ({fingerprint[:8]})")
            return InsightResponse(InsightOutcome.CACHE_HIT, cached.to_dict())

        # CLAIMING
        key = InsightKey(
            code=code,
            asof_date=self._today(),
            fingerprint=fingerprint,
            model=self.model,
            prompt_version=self.prompt_version,
        )
        data_latest_date = _parse_date(features.get("latest_date"))
        claim = await self.arbiter.try_claim(key, data_latest_date=data_latest_date)
        if not claim.claimed:
            body = claim.record.to_dict() if claim.record else {"status": "pending"}
            if body.get("status") != InsightStatus.DONE.value:
                logger.info(
                    f"인사이트 {body.get('status')} 상태 유지: {key} "
                    f"(재시도 가능: {window_closes_at(key.asof_date).isoformat()})"
                )
            return InsightResponse(InsightOutcome.BLOCKED, body)

        # CLAIMED → GENERATING
        try:
            history = await self.market_data.get_indicator_history(
                code, history_limit_for(features.get("frequency"))
            )
            result = await self.generator.generate(features, history, key.asof_date)
        except (GenerationError, UpstreamDataError) as e:
            logger.error(f"인사이트 생성 실패 ({code}): {e}")
            record = await self.persister.commit_failure(key, str(e))
            return InsightResponse(InsightOutcome.CLAIMED, record.to_dict())
        except Exception as e:
            # 예상 못 한 오류도 pending 으로 남기지 않는다
            logger.exception(f"인사이트 생성 중 예외 ({code}): {e}")
            record = await self.persister.commit_failure(
                key, f"Unexpected error: {type(e).__name__}: {e}"
            )
            return InsightResponse(InsightOutcome.CLAIMED, record.to_dict())

        # PERSISTING
        record = await self.persister.commit_success(key, result, data_latest_date=data_latest_date)
        return InsightResponse(InsightOutcome.CLAIMED, record.to_dict())
