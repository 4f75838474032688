from .indicator_insight import IndicatorInsight, InsightStatus
from .portfolio_advice import PortfolioAdvice, SYSTEM_USER_ID

__all__ = [
    "IndicatorInsight",
    "InsightStatus",
    "PortfolioAdvice",
    "SYSTEM_USER_ID",
]
