"""생성 결과를 클레임한 행에 기록."""
import logging
from datetime import date
from typing import Optional

from models.indicator_insight import IndicatorInsight, InsightStatus
from schemas.insight import IndicatorInsightResult
from services.generation_cache import InsightCacheStore, InsightKey

logger = logging.getLogger(__name__)

ERROR_MESSAGE_MAX_LEN = 1000


class ResultPersister:
    """pending → done / pending → error 전이를 한 번의 조건부 UPDATE로 기록.

    모델/프롬프트 버전은 클레임 키에 이미 들어 있으므로 결과 필드만 기록한다.
    """

    def __init__(self, store: InsightCacheStore):
        self.store = store

    async def commit_success(
        self,
        key: InsightKey,
        result: IndicatorInsightResult,
        data_latest_date: Optional[date] = None,
    ) -> IndicatorInsight:
        insight = result.model_dump()
        record = await self.store.commit(
            key,
            InsightStatus.DONE,
            {
                "insight_json": insight,
                "headline": result.headline,
                "signal_label": result.signal_label.lower(),
                "confidence": result.confidence,
                "confidence_reason": result.confidence_reason,
                "error_message": None,
                "data_latest_date": data_latest_date,
            },
        )
        logger.info(f"인사이트 저장 완료: {key} ({result.signal_label}, {result.confidence:.2f})")
        return record

    async def commit_failure(
        self,
        key: InsightKey,
        message: str,
    ) -> IndicatorInsight:
        record = await self.store.commit(
            key,
            InsightStatus.ERROR,
            {"error_message": (message or "Generation failed")[:ERROR_MESSAGE_MAX_LEN]},
        )
        logger.warning(f"인사이트 생성 실패 기록: {key} - {message}")
        return record
