"""지표 인사이트 스키마 (LLM 응답 검증 + API 요청/응답)."""
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class Directionality(BaseModel):
    higher_is: str = "depends"
    notes: str = ""


class NowContext(BaseModel):
    pctile_10y: Optional[float] = None
    zscore_3y: Optional[float] = None


class NowSection(BaseModel):
    latest_date: Optional[str] = None
    latest_value: Optional[float] = None
    context: NowContext = NowContext()


class Momentum(BaseModel):
    delta_1w: Optional[float] = None
    delta_1m: Optional[float] = None
    delta_3m: Optional[float] = None
    momentum_label: str = "flat"


class Trigger(BaseModel):
    level: Optional[float] = None
    direction: Optional[str] = None
    why: str = ""


class WatchLevels(BaseModel):
    bullish_trigger: Trigger = Trigger()
    bearish_trigger: Trigger = Trigger()
    notes: str = ""


class NarrativeBullet(BaseModel):
    title: str
    text: str


class AssetImpact(BaseModel):
    asset: str
    impact: str
    why: str = ""


class PositioningTilt(BaseModel):
    equity_beta: str = "neutral"
    duration: str = "neutral"
    credit_risk: str = "neutral"
    cash_buffer: str = "neutral"


class Implications(BaseModel):
    asset_impact: list[AssetImpact] = []
    positioning_tilt: PositioningTilt = PositioningTilt()


class DataQuality(BaseModel):
    missing_fields: list[str] = []
    notes: str = ""


class IndicatorInsightResult(BaseModel):
    """LLM이 반환해야 하는 인사이트 구조.

    headline / signal_label / confidence 는 필수, 나머지 섹션은 없으면 기본값.
    """
    headline: str = Field(min_length=1)
    signal_label: Literal["bullish", "neutral", "bearish"] = Field(
        validation_alias=AliasChoices("signal_label", "signal"),
    )
    confidence: float = Field(ge=0.0, le=1.0)
    confidence_reason: str = ""

    what_it_measures: str = ""
    directionality: Directionality = Directionality()
    now: NowSection = NowSection()
    momentum: Momentum = Momentum()
    watch_levels: WatchLevels = WatchLevels()
    recent_pattern: str = ""
    narrative_bullets: list[NarrativeBullet] = []
    implications: Implications = Implications()
    data_quality: DataQuality = DataQuality()

    @field_validator("signal_label", mode="before")
    @classmethod
    def _normalize_signal(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class IndicatorInsightRequest(BaseModel):
    code: Optional[str] = None


class IndicatorInsightResponse(BaseModel):
    status: Literal["pending", "done", "error"]
    code: Optional[str] = None
    asof_date: Optional[str] = None
    headline: Optional[str] = None
    signal_label: Optional[str] = None
    confidence: Optional[float] = None
    confidence_reason: Optional[str] = None
    insight_json: Optional[dict] = None
    error_message: Optional[str] = None
    model: Optional[str] = None
    prompt_version: Optional[str] = None
    data_latest_date: Optional[str] = None
    data_fingerprint: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
