"""포트폴리오 어드바이스 생성기.

매크로 레짐 + 핵심 지표 + 포트폴리오 + 제약조건으로 페이로드를 만들고 Claude에 질의한다.
"""
import json
import logging
from collections import OrderedDict
from typing import Any

from pydantic import ValidationError

from core.config import Settings
from core.exceptions import GenerationError, UpstreamDataError
from integrations.llm import LLMClient
from schemas.advisory import AdvisoryResponse
from services.market_data import MarketDataSource
from utils.llm_output import extract_json_object

logger = logging.getLogger(__name__)

INDICATOR_COLUMNS = (
    "code,name,category,latest_date,latest_value,delta_1m,delta_3m,"
    "zscore_3y,pctile_10y,std_3y"
)

SYSTEM_PROMPT = """You are a portfolio co-pilot. Use ONLY the provided JSON payload. Do not invent holdings, prices, or macro data.

Goal: propose a small number of practical adjustments that align the portfolio with the macro regime, while respecting data quality and constraints.

Rules:
- If macro_regime.data_quality_label is "low" OR macro_regime.conviction_label is "low", prefer smaller changes or "no action".
- Do not output generic advice. Every action must reference specific holdings and specific macro signals from the payload.
- Avoid frequent trading. Prefer rebalancing.
- Output JSON ONLY with this schema:

{
  "summary": {"headline": "string", "conviction": "low|medium|high", "data_quality": "low|medium|high"},
  "actions": [
    {"action": "rebalance|add|trim|hold", "asset": "string", "from_weight_pct": number|null, "to_weight_pct": number|null, "change_pct": number|null, "why": "string"}
  ],
  "rationale": [
    {"point": "string"}
  ],
  "triggers": [
    {"if": "string", "then": "string"}
  ],
  "no_action_reason": "string|null"
}

Keep actions <= 5. If recommending no action, set actions = [] and fill no_action_reason."""


def _asset_class(holding: dict) -> str:
    return holding.get("asset_class") or holding.get("asset_type") or "Other"


def _first_present(holding: dict, *keys: str) -> Any:
    for key in keys:
        value = holding.get(key)
        if value is not None:
            return value
    return None


def aggregate_portfolio(holdings: list[dict]) -> dict:
    """보유 종목 → 총액, 자산군별 소계/비중, 종목별 비중."""
    total_value = sum((h.get("value_sgd") or 0) for h in holdings)

    class_totals: "OrderedDict[str, float]" = OrderedDict()
    for h in holdings:
        cls = _asset_class(h)
        class_totals[cls] = class_totals.get(cls, 0) + (h.get("value_sgd") or 0)

    subtotals = [
        {
            "asset_class": cls,
            "total_sgd": total,
            "weight_pct": (total / total_value) * 100 if total_value > 0 else 0,
        }
        for cls, total in class_totals.items()
    ]

    rows = []
    for h in holdings:
        if total_value > 0:
            weight = ((h.get("value_sgd") or 0) / total_value) * 100
        else:
            weight = h.get("weight_pct")
        rows.append({
            "ticker": _first_present(h, "ticker", "code"),
            "asset_name": h.get("asset_name"),
            "asset_class": _asset_class(h),
            "units": _first_present(h, "units", "quantity"),
            "price_latest": _first_present(h, "price_latest", "price_used"),
            "price_date_used": h.get("price_date_used"),
            "fx_rate": _first_present(h, "fx_rate", "sgd_per_ccy"),
            "fx_date_used": h.get("fx_date_used"),
            "value_sgd": h.get("value_sgd"),
            "weight_pct": weight,
        })

    return {
        "total_value_sgd": total_value,
        "subtotals": subtotals,
        "holdings": rows,
    }


def parse_advisory_response(text: str) -> AdvisoryResponse:
    """Claude 응답 → 검증된 어드바이스. 실패 시 GenerationError."""
    try:
        data = extract_json_object(text)
    except ValueError as e:
        logger.error(f"어드바이스 응답에서 JSON을 찾지 못함: {(text or '')[:200]}")
        raise GenerationError(f"Failed to parse Claude response: {e}") from e

    try:
        return AdvisoryResponse.model_validate(data)
    except ValidationError as e:
        raise GenerationError(
            f"Claude response failed schema validation: {e.errors()[0]['msg']}"
        ) from e


class AdvisoryGenerator:
    """어드바이스 페이로드 구성 + 생성."""

    def __init__(self, market_data: MarketDataSource, llm: LLMClient, settings: Settings):
        self.market_data = market_data
        self.llm = llm
        self.settings = settings

    @property
    def model(self) -> str:
        return self.llm.model

    async def build_payload(self) -> dict:
        """원천 데이터로 어드바이스 입력 페이로드 구성.

        Raises:
            UpstreamDataError: 레짐 스냅샷 없음 또는 조회 실패
        """
        regime = await self.market_data.get_latest_regime()
        if not regime:
            raise UpstreamDataError("Failed to fetch regime snapshot")

        indicators = await self.market_data.list_indicator_features(
            codes=self.settings.regime_code_list,
            columns=INDICATOR_COLUMNS,
        )
        holdings = await self.market_data.list_portfolio_positions()

        macro_regime = {
            "asof_date": regime.get("asof_date"),
            "growth_label": regime.get("growth_label"),
            "inflation_label": regime.get("inflation_label"),
            "policy_label": regime.get("policy_label"),
            "risk_label": regime.get("risk_label"),
            "liquidity_label": regime.get("liquidity_label"),
            "conviction_label": regime.get("confidence_label"),
            "data_quality_label": regime.get("data_quality_label"),
            "data_quality_score": regime.get("data_quality_score"),
            "max_regime_lag_days": regime.get("max_regime_lag_days"),
        }

        return {
            "asof": regime.get("asof_date"),
            "base_currency": self.settings.base_currency,
            "macro_regime": macro_regime,
            "macro_drivers": indicators,
            "portfolio": aggregate_portfolio(holdings),
            "constraints": {
                "max_single_position_pct": self.settings.max_single_position_pct,
                "preferred_rebalance_threshold_pct": self.settings.preferred_rebalance_threshold_pct,
            },
        }

    async def generate(self, payload: dict) -> AdvisoryResponse:
        text = await self.llm.complete(
            SYSTEM_PROMPT,
            json.dumps(payload, indent=2, default=str),
            max_tokens=4096,
        )
        return parse_advisory_response(text)
