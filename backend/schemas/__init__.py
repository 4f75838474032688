from .insight import (
    IndicatorInsightResult,
    IndicatorInsightRequest,
    IndicatorInsightResponse,
)
from .advisory import (
    AdvisorySummary,
    AdvisoryAction,
    AdvisoryRationale,
    AdvisoryTrigger,
    AdvisoryResponse,
    AdvisoryResult,
)
from .macro import (
    TrendPoint,
    IndicatorWithTrend,
    MacroSnapshotResponse,
    CreditStats,
    CreditStressResponse,
    TakeawaysResponse,
)
from .portfolio import (
    PortfolioGroup,
    AllocationSlice,
    PortfolioSummaryResponse,
    UpdateUnitsRequest,
    UpdateUnitsResponse,
)

__all__ = [
    "IndicatorInsightResult",
    "IndicatorInsightRequest",
    "IndicatorInsightResponse",
    "AdvisorySummary",
    "AdvisoryAction",
    "AdvisoryRationale",
    "AdvisoryTrigger",
    "AdvisoryResponse",
    "AdvisoryResult",
    "TrendPoint",
    "IndicatorWithTrend",
    "MacroSnapshotResponse",
    "CreditStats",
    "CreditStressResponse",
    "TakeawaysResponse",
    "PortfolioGroup",
    "AllocationSlice",
    "PortfolioSummaryResponse",
    "UpdateUnitsRequest",
    "UpdateUnitsResponse",
]
