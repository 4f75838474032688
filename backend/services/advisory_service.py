"""포트폴리오 어드바이스 요청 처리.

지표 인사이트와 달리 클레임 단계가 없다. 동시 캐시 미스는 각자 LLM을 호출하고
INSERT 충돌로 한 건만 남는다 (사용자가 직접 누르는 드문 동작이라 중복 호출 비용을 감수).
"""
import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings
from core.exceptions import ConfigurationError, UpstreamDataError
from integrations.llm import LLMClient
from services.advice_cache import AdviceCacheStore
from services.advisory_generator import AdvisoryGenerator
from services.fingerprint import payload_hash
from services.market_data import MarketDataSource

logger = logging.getLogger(__name__)


def _regime_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except (TypeError, ValueError) as e:
        raise UpstreamDataError(f"Invalid regime as-of date: {value}") from e


class AdvisoryService:
    """레짐 + 포트폴리오 기반 어드바이스 조회/생성."""

    def __init__(
        self,
        db: AsyncSession,
        market_data: MarketDataSource,
        llm: LLMClient,
        settings: Settings,
    ):
        self.market_data = market_data
        self.llm = llm
        self.settings = settings
        self.store = AdviceCacheStore(db)
        self.generator = AdvisoryGenerator(market_data, llm, settings)

    @property
    def prompt_version(self) -> str:
        return self.settings.advisory_prompt_version

    async def generate_advice(self) -> tuple[bool, dict]:
        """어드바이스 반환.

        Returns:
            (캐시 히트 여부, {...어드바이스, cached, created_at})
        """
        if not self.market_data.is_configured:
            raise ConfigurationError("Missing Supabase credentials")
        if not self.llm.is_configured:
            raise ConfigurationError("ANTHROPIC_API_KEY not configured")

        payload = await self.generator.build_payload()
        digest = payload_hash(payload)
        asof = _regime_date(payload.get("asof"))
        model = self.generator.model

        cached = await self.store.lookup(asof, digest, model, self.prompt_version)
        if cached is not None:
            logger.info(f"어드바이스 캐시 히트: {asof} {digest[:12]}")
            created_at: Optional[datetime] = cached.created_at
            return True, {
                **cached.response,
                "cached": True,
                "created_at": created_at.isoformat() if created_at else "",
            }

        logger.info(f"어드바이스 캐시 미스: {asof} {digest[:12]} → {model} 호출")
        advice = await self.generator.generate(payload)
        response = advice.model_dump(by_alias=True)

        await self.store.insert_ignore_duplicate(
            asof, digest, model, self.prompt_version, payload, response
        )

        return False, {
            **response,
            "cached": False,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
