"""지표 인사이트 생성기: 프롬프트 구성 → LLM 호출 → 응답 검증."""
import json
import logging
from datetime import date
from typing import Any

from pydantic import ValidationError

from core.exceptions import GenerationError
from integrations.llm import LLMClient
from schemas.insight import IndicatorInsightResult
from utils.llm_output import extract_json_object, round_sig

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a macro dashboard analyst. Be concise. "
    "Give insights useful to a retail investor based on the indicator data."
)

OUTPUT_SCHEMA = """OUTPUT REQUIREMENTS:
Return JSON ONLY with this exact schema:
{
  "headline": "string (<= 80 chars)",
  "signal_label": "bullish|neutral|bearish",
  "confidence": number (0.0 to 1.0),
  "confidence_reason": "string (<= 140 chars)",

  "what_it_measures": "string (<= 200 chars)",
  "directionality": {
    "higher_is": "better|worse|depends",
    "notes": "string (<= 160 chars)"
  },

  "now": {
    "latest_date": "YYYY-MM-DD",
    "latest_value": number,
    "context": {
      "pctile_10y": number|null,
      "zscore_3y": number|null
    }
  },

  "momentum": {
    "delta_1w": number|null,
    "delta_1m": number|null,
    "delta_3m": number|null,
    "momentum_label": "improving|deteriorating|mixed|flat"
  },

  "watch_levels": {
    "bullish_trigger": {"level": number|null, "direction": "below|above|null", "why": "string (<= 120 chars)"},
    "bearish_trigger": {"level": number|null, "direction": "below|above|null", "why": "string (<= 120 chars)"},
    "notes": "string (<= 160 chars)"
  },

  "recent_pattern": "string (<= 220 chars)",

  "narrative_bullets": [
    {"title": "What it is", "text": "string (<= 240 chars)"},
    {"title": "Level vs history", "text": "string (<= 240 chars)"},
    {"title": "Momentum", "text": "string (<= 240 chars)"},
    {"title": "What to watch", "text": "string (<= 240 chars)"},
    {"title": "Recent pattern", "text": "string (<= 240 chars)"}
  ],

  "implications": {
    "asset_impact": [
      {"asset": "equities|credit|rates|usd|commodities", "impact": "supportive|headwind|neutral", "why": "string (<= 120 chars)"}
    ],
    "positioning_tilt": {
      "equity_beta": "increase|reduce|neutral",
      "duration": "increase|reduce|neutral",
      "credit_risk": "increase|reduce|neutral",
      "cash_buffer": "increase|reduce|neutral"
    }
  },

  "data_quality": {
    "missing_fields": ["string", "..."],
    "notes": "string (<= 160 chars)"
  }
}"""


def parse_insight_response(text: str) -> IndicatorInsightResult:
    """LLM 응답 텍스트 → 검증된 인사이트. 실패 시 GenerationError (재시도 없음)."""
    try:
        data = extract_json_object(text)
    except ValueError as e:
        logger.warning(f"인사이트 JSON 파싱 실패: {(text or '')[:200]}")
        raise GenerationError(f"Invalid LLM response format: {e}") from e

    try:
        return IndicatorInsightResult.model_validate(data)
    except ValidationError as e:
        logger.warning(f"인사이트 스키마 검증 실패: {e.error_count()}건")
        raise GenerationError(f"LLM response failed schema validation: {e.errors()[0]['msg']}") from e


class IndicatorInsightGenerator:
    """단일 지표 인사이트 생성."""

    def __init__(self, llm: LLMClient, significant_figures: int = 4):
        self.llm = llm
        self.significant_figures = significant_figures

    @property
    def model(self) -> str:
        return self.llm.model

    def _r(self, value: Any) -> Any:
        return round_sig(value, self.significant_figures)

    def build_payload(
        self,
        features: dict,
        history: list[dict],
        current_date: date,
    ) -> dict:
        """LLM 입력 페이로드. 숫자는 유효숫자로 반올림 (프롬프트 크기 제한용)."""
        percentile = features.get("pctile_10y")
        if percentile is None:
            percentile = features.get("percentile_10y")

        # 조회는 최신순 → 시간순으로 뒤집어서 전달
        recent_history = [
            {"obs_date": h.get("obs_date"), "raw_value": self._r(h.get("raw_value"))}
            for h in reversed(history)
        ]

        return {
            "metadata": {
                "name": features.get("name"),
                "category": features.get("category"),
                "unit": features.get("display_unit"),
                "frequency": features.get("frequency"),
                "source": features.get("source"),
            },
            "stats": {
                "latest_value": self._r(features.get("latest_value")),
                "latest_date": features.get("latest_date"),
                "delta_1m": self._r(features.get("delta_1m")),
                "zscore_3y": self._r(features.get("zscore_3y")),
                "delta_3m": self._r(features.get("delta_3m")),
                "percentile_10y": self._r(percentile),
            },
            "recent_history": recent_history,
            "current_date": current_date.isoformat(),
        }

    def build_user_prompt(self, payload: dict) -> str:
        return (
            f"Analyze this indicator data:\n{json.dumps(payload, default=str)}\n\n"
            f"Instructions:\n{OUTPUT_SCHEMA}"
        )

    async def generate(
        self,
        features: dict,
        history: list[dict],
        current_date: date,
    ) -> IndicatorInsightResult:
        """인사이트 생성.

        Raises:
            GenerationError: LLM 호출 실패 또는 응답 검증 실패
        """
        payload = self.build_payload(features, history, current_date)
        text = await self.llm.complete(
            SYSTEM_PROMPT,
            self.build_user_prompt(payload),
            json_mode=True,
        )
        return parse_insight_response(text)
