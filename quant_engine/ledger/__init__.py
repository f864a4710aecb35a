"""Trade ledger: fills, fees, average price and realized PnL."""

from quant_engine.ledger.trade_ledger import (
    CostConfig,
    DEFAULT_COSTS,
    LedgerResult,
    apply_trade,
    execution_price,
    unrealized_pnl,
)

__all__ = [
    "CostConfig",
    "DEFAULT_COSTS",
    "LedgerResult",
    "apply_trade",
    "execution_price",
    "unrealized_pnl",
]
