"""매크로 대시보드 데이터 서비스 (스냅샷, 신용 스트레스, 설명, 레짐 요약)."""
import asyncio
import json
import logging
import re
from datetime import date, timedelta
from typing import Any, Optional

from core.config import Settings
from core.exceptions import ConfigurationError, UpstreamDataError
from core.timezone import current_window
from integrations.llm import LLMClient
from services.market_data import MarketDataSource, TREND_POINTS
from utils.llm_output import round_sig

logger = logging.getLogger(__name__)

CREDIT_LOOKBACK_DAYS = 30
MAX_TAKEAWAYS = 5

TAKEAWAYS_SYSTEM_PROMPT = (
    "You are a senior macro strategist. Analyze the provided economic data. "
    "Identify the most significant regime shifts, risks, or opportunities. "
    "Output EXACTLY 3-5 concise bullet points (plain text, no markdown bullets needed, "
    "just newlines or separated). Do not include introductory text. "
    "You need to explain it in terms that a retail investor with basic investment "
    "knowledge can understand."
)

_BULLET_PREFIX = re.compile(r"^[\s\-\*•]+")


def _to_date(value: Any) -> Optional[date]:
    try:
        return date.fromisoformat(str(value)[:10])
    except (TypeError, ValueError):
        return None


def compute_credit_stats(history_desc: list[dict]) -> Optional[dict]:
    """최신 갭 vs 30일 전 갭 비교.

    history_desc 는 최신순. 30일 이상 이전 관측값이 없으면 가장 오래된 값과 비교.
    """
    if not history_desc:
        return None

    latest = history_desc[0]
    latest_date = _to_date(latest.get("obs_date"))
    prev = history_desc[-1]
    if latest_date is not None:
        target = latest_date - timedelta(days=CREDIT_LOOKBACK_DAYS)
        for row in history_desc:
            row_date = _to_date(row.get("obs_date"))
            if row_date is not None and row_date <= target:
                prev = row
                break

    change = None
    if latest.get("gap_bps") is not None and prev.get("gap_bps") is not None:
        change = latest["gap_bps"] - prev["gap_bps"]

    return {
        "as_of": str(latest.get("obs_date")),
        "gap_bps": latest.get("gap_bps"),
        "hy_oas_pct": latest.get("hy_oas_pct"),
        "ig_oas_pct": latest.get("ig_oas_pct"),
        "change_30d_bps": change,
    }


def parse_bullets(text: str, limit: int = MAX_TAKEAWAYS) -> list[str]:
    """줄 단위로 나누고 글머리 기호 제거, 빈 줄 제외, 최대 limit개."""
    bullets = []
    for line in (text or "").split("\n"):
        cleaned = _BULLET_PREFIX.sub("", line).strip()
        if cleaned:
            bullets.append(cleaned)
    return bullets[:limit]


class MacroService:
    """매크로 스냅샷/신용/설명/요약."""

    def __init__(
        self,
        market_data: MarketDataSource,
        settings: Settings,
        llm: Optional[LLMClient] = None,
    ):
        self.market_data = market_data
        self.settings = settings
        self.llm = llm

    def _ensure_configured(self):
        if not self.market_data.is_configured:
            raise ConfigurationError("Missing Supabase credentials")

    async def _trend(self, code: str) -> list[dict]:
        """스파크라인용 추세 (시간순). 실패 시 빈 리스트."""
        try:
            rows = await self.market_data.get_indicator_history(code, TREND_POINTS)
        except UpstreamDataError as e:
            logger.error(f"Failed to fetch trend for {code}: {e}")
            return []
        return [
            {"date": r.get("obs_date"), "value": r.get("raw_value")}
            for r in reversed(rows)
        ]

    async def get_snapshot(self) -> dict:
        """레짐 + 요약 + 지표(추세 포함)."""
        self._ensure_configured()

        regime = await self.market_data.get_latest_regime()

        takeaways = None
        try:
            takeaways = await self.market_data.get_regime_takeaways()
        except UpstreamDataError as e:
            logger.warning(f"레짐 요약 조회 실패, 생략: {e}")

        features = await self.market_data.list_indicator_features()
        trends = await asyncio.gather(*(self._trend(f["code"]) for f in features))
        indicators = [{**feat, "trend": trend} for feat, trend in zip(features, trends)]

        as_of = (regime or {}).get("asof_date") or current_window().isoformat()
        return {
            "asOf": str(as_of),
            "regime": regime,
            "takeaways": takeaways,
            "indicators": indicators,
        }

    async def get_credit_stress(self) -> dict:
        """HY-IG 갭 통계 + 차트용 히스토리 (시간순)."""
        self._ensure_configured()

        history = await self.market_data.get_credit_gap_history()
        if not history:
            return {"stats": None, "history": []}

        stats = compute_credit_stats(history)
        return {"stats": stats, "history": list(reversed(history))}

    async def get_explain(self) -> list[dict]:
        self._ensure_configured()
        return await self.market_data.list_explain_features()

    async def generate_takeaways(self) -> list[str]:
        """전체 지표에 대한 3~5개 요약 문장 (캐시 없음, 사용자 요청 시)."""
        self._ensure_configured()
        if self.llm is None or not self.llm.is_configured:
            raise ConfigurationError("Missing Anthropic API Key")

        features = await self.market_data.list_indicator_features()
        sig = self.settings.prompt_significant_figures
        formatted = [
            {
                "code": f.get("code"),
                "name": f.get("name"),
                "category": f.get("category"),
                "latest": round_sig(f.get("latest_value"), sig),
                "delta_1m": round_sig(f.get("delta_1m"), sig),
                "zscore_3y": round_sig(f.get("zscore_3y"), sig),
                "percentile": round_sig(f.get("pctile_10y"), sig),
            }
            for f in features
        ]

        user = (
            "Analyze this macro dashboard data (deltas are 1-month changes, "
            f"zscores are 3-year). \n\n{json.dumps(formatted, indent=2)}"
        )
        text = await self.llm.complete(
            TAKEAWAYS_SYSTEM_PROMPT, user, max_tokens=500, temperature=0.2
        )
        bullets = parse_bullets(text)
        logger.info(f"레짐 요약 생성: {len(bullets)}개")
        return bullets
