"""원천 데이터 조회 서비스 (Supabase 뷰 → dict).

뷰 이름과 조회 조건을 한 곳에 모아서 서비스 코드가 PostgREST 문법을 모르도록 한다.
"""
import logging
from typing import Any, Optional

from integrations.supabase import SupabaseClient, in_filter

logger = logging.getLogger(__name__)

# 빈도별 LLM 컨텍스트 히스토리 길이
HISTORY_LIMITS = {
    "daily": 60,
    "week": 52,
    "month": 24,
}
TREND_POINTS = 40
CREDIT_HISTORY_LIMIT = 1300  # 약 5년치 영업일


def history_limit_for(frequency: Optional[str]) -> int:
    """지표 빈도에 맞는 히스토리 개수."""
    freq = (frequency or "daily").lower()
    if "week" in freq:
        return HISTORY_LIMITS["week"]
    if "month" in freq:
        return HISTORY_LIMITS["month"]
    return HISTORY_LIMITS["daily"]


class MarketDataSource:
    """지표/레짐/신용/포트폴리오 원천 데이터 조회."""

    def __init__(self, client: SupabaseClient):
        self.client = client

    @property
    def is_configured(self) -> bool:
        return self.client.is_configured

    # ---- 지표 ----

    async def get_indicator_features(self, code: str) -> Optional[dict[str, Any]]:
        """지표 피처 1건 (최신값, 변화량, z-score 등)."""
        rows = await self.client.select(
            "v_indicator_features", filters={"code": f"eq.{code}"}, limit=1
        )
        return rows[0] if rows else None

    async def list_indicator_features(
        self,
        codes: Optional[list[str]] = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """지표 피처 목록 (카테고리, 코드 순)."""
        filters = {"code": in_filter(codes)} if codes else None
        return await self.client.select(
            "v_indicator_features",
            filters=filters,
            order="category.asc,code.asc",
            columns=columns,
        )

    async def get_indicator_history(self, code: str, limit: int) -> list[dict[str, Any]]:
        """최근 관측값 limit개 (최신순)."""
        return await self.client.select(
            "indicator_values",
            filters={"code": f"eq.{code}", "obs_date": "not.is.null"},
            order="obs_date.desc",
            limit=limit,
            columns="obs_date,raw_value",
        )

    async def list_explain_features(self) -> list[dict[str, Any]]:
        return await self.client.select(
            "v_indicator_features_explain", order="category.asc,name.asc"
        )

    # ---- 레짐 ----

    async def get_latest_regime(self) -> Optional[dict[str, Any]]:
        rows = await self.client.select(
            "v_regime_snapshot", order="asof_date.desc", limit=1
        )
        return rows[0] if rows else None

    async def get_regime_takeaways(self) -> Optional[dict[str, Any]]:
        rows = await self.client.select("v_regime_takeaways", limit=1)
        return rows[0] if rows else None

    # ---- 신용 스트레스 ----

    async def get_credit_gap_history(self, limit: int = CREDIT_HISTORY_LIMIT) -> list[dict[str, Any]]:
        """HY-IG 스프레드 갭 (최신순)."""
        return await self.client.select(
            "v_credit_risk_gap", order="obs_date.desc", limit=limit
        )

    # ---- 포트폴리오 ----

    async def list_portfolio_positions(self) -> list[dict[str, Any]]:
        """SGD 환산 평가된 보유 포지션."""
        return await self.client.select("v_portfolio_positions_valued_sgd")

    async def find_asset_id(self, code: str) -> Optional[Any]:
        rows = await self.client.select(
            "assets", filters={"code": f"eq.{code}"}, columns="asset_id"
        )
        return rows[0].get("asset_id") if rows else None

    async def find_account_id(self, account_name: str) -> Optional[Any]:
        rows = await self.client.select(
            "accounts", filters={"name": f"eq.{account_name}"}, columns="account_id"
        )
        return rows[0].get("account_id") if rows else None

    async def update_position_quantity(
        self,
        asset_id: Any,
        account_id: Any,
        quantity: float,
        updated_at: str,
    ) -> list[dict[str, Any]]:
        return await self.client.update(
            "positions",
            filters={"asset_id": f"eq.{asset_id}", "account_id": f"eq.{account_id}"},
            values={"quantity": quantity, "updated_at": updated_at},
        )
