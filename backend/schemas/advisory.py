"""포트폴리오 어드바이스 스키마."""
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AdvisorySummary(BaseModel):
    headline: str
    conviction: Literal["low", "medium", "high"]
    data_quality: Literal["low", "medium", "high"]

    @field_validator("conviction", "data_quality", mode="before")
    @classmethod
    def _lower(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class AdvisoryAction(BaseModel):
    action: Literal["rebalance", "add", "trim", "hold"]
    asset: str
    from_weight_pct: Optional[float] = None
    to_weight_pct: Optional[float] = None
    change_pct: Optional[float] = None
    why: str = ""


class AdvisoryRationale(BaseModel):
    point: str


class AdvisoryTrigger(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    if_: str = Field(alias="if")
    then: str


class AdvisoryResponse(BaseModel):
    summary: AdvisorySummary
    actions: list[AdvisoryAction] = Field(default_factory=list, max_length=5)
    rationale: list[AdvisoryRationale] = []
    triggers: list[AdvisoryTrigger] = []
    no_action_reason: Optional[str] = None


class AdvisoryResult(AdvisoryResponse):
    """API 응답: 어드바이스 + 캐시 여부."""
    cached: bool
    created_at: str
