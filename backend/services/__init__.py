from .market_data import MarketDataSource
from .indicator_insight_service import IndicatorInsightService, InsightOutcome, InsightResponse
from .advisory_service import AdvisoryService
from .macro_service import MacroService
from .portfolio_service import PortfolioService

__all__ = [
    "MarketDataSource",
    "IndicatorInsightService",
    "InsightOutcome",
    "InsightResponse",
    "AdvisoryService",
    "MacroService",
    "PortfolioService",
]
