"""포트폴리오 스키마."""
from typing import Any, Optional

from pydantic import BaseModel


class PortfolioGroup(BaseModel):
    id: str
    label: str
    items: list[dict[str, Any]]
    total_sgd: float
    weight_pct: float


class AllocationSlice(BaseModel):
    name: str
    value: float


class PortfolioSummaryResponse(BaseModel):
    groups: list[PortfolioGroup]
    total_sgd: float
    allocation_by_group: list[AllocationSlice]


class UpdateUnitsRequest(BaseModel):
    code: Optional[str] = None
    account: Optional[str] = None
    new_quantity: Optional[float] = None


class UpdateUnitsResponse(BaseModel):
    success: bool
    message: str
