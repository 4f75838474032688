from . import insights, advice, macro, portfolio, health

__all__ = [
    "insights",
    "advice",
    "macro",
    "portfolio",
    "health",
]
