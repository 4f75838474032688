"""매크로 스냅샷 / 신용 스트레스 스키마."""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class TrendPoint(BaseModel):
    date: str
    value: Optional[float] = None


class IndicatorWithTrend(BaseModel):
    """v_indicator_features 행 + 스파크라인용 추세."""
    model_config = ConfigDict(extra="allow")

    code: str
    name: Optional[str] = None
    category: Optional[str] = None
    trend: list[TrendPoint] = []


class MacroSnapshotResponse(BaseModel):
    asOf: str
    regime: Optional[dict[str, Any]] = None
    takeaways: Optional[dict[str, Any]] = None
    indicators: list[IndicatorWithTrend] = []


class CreditStats(BaseModel):
    as_of: str
    gap_bps: Optional[float] = None
    hy_oas_pct: Optional[float] = None
    ig_oas_pct: Optional[float] = None
    change_30d_bps: Optional[float] = None


class CreditStressResponse(BaseModel):
    stats: Optional[CreditStats] = None
    history: list[dict[str, Any]] = []


class TakeawaysResponse(BaseModel):
    bullets: list[str]
