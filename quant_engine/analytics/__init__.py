"""Analytics: performance metrics over ledger trades."""

from quant_engine.analytics.metrics import (
    PerformanceMetrics,
    compute_metrics,
    max_drawdown,
    win_rate,
    profit_factor,
    expectancy,
    summarize,
)

__all__ = [
    "PerformanceMetrics",
    "compute_metrics",
    "max_drawdown",
    "win_rate",
    "profit_factor",
    "expectancy",
    "summarize",
]
