"""
Trade ledger: turns one order into an execution and updates position, average
price and realized PnL, net of slippage, commission and transaction tax.
"""

from __future__ import annotations
import itertools
import math
from dataclasses import dataclass
from typing import Any

from quant_engine.core.types import Position, SignalAction, Trade

_trade_seq = itertools.count(1)


@dataclass(frozen=True)
class CostConfig:
    """Contract costs. Defaults are TXF: 1 point = 200, 0.002% tax, 50 per lot per side."""
    point_value: float = 200.0
    tax_rate: float = 0.00002
    commission: float = 50.0
    slippage: float = 1.0
    use_slippage: bool = True


DEFAULT_COSTS = CostConfig()


@dataclass(frozen=True)
class LedgerResult:
    """Everything apply_trade computed. Only net_pnl affects balances outside the ledger."""
    trade: Trade
    position: Position
    gross_pnl: float
    fees: float
    tax: float
    commission: float
    net_pnl: float


def _round_half_up(x: float) -> float:
    return float(math.floor(x + 0.5))


def execution_price(side: SignalAction, raw_price: float, costs: CostConfig) -> float:
    """Buy at ask (raw + slippage), sell at bid (raw - slippage)."""
    if not costs.use_slippage:
        return raw_price
    return raw_price + costs.slippage if side == SignalAction.BUY else raw_price - costs.slippage


def apply_trade(
    side: SignalAction,
    raw_price: float,
    size: float,
    time: Any,
    position: Position,
    costs: CostConfig = DEFAULT_COSTS,
    id_prefix: str = "TRD",
    note: str = "",
) -> LedgerResult:
    """
    Execute `size` lots on `side` against `position`.
    A close never covers more than the open quantity; the remainder opens the
    opposite side at the execution price.
    """
    side = SignalAction(side)
    exec_price = execution_price(side, raw_price, costs)

    tax = _round_half_up(exec_price * costs.point_value * size * costs.tax_rate)
    commission = costs.commission * size
    fees = commission + tax

    new_size = position.size
    new_avg = position.avg_price
    gross = 0.0

    signed_qty = size if side == SignalAction.BUY else -size
    is_closing = (position.size > 0 and side == SignalAction.SELL) or (position.size < 0 and side == SignalAction.BUY)

    if is_closing:
        close_qty = min(abs(position.size), size)
        if position.size > 0:
            gross = (exec_price - position.avg_price) * close_qty * costs.point_value
        else:
            gross = (position.avg_price - exec_price) * close_qty * costs.point_value
        new_size = position.size + signed_qty
        if (position.size > 0 and new_size < 0) or (position.size < 0 and new_size > 0):
            new_avg = exec_price
        elif new_size == 0:
            new_avg = 0.0
    else:
        total_value = abs(position.size) * position.avg_price + size * exec_price
        total_size = abs(position.size) + size
        new_avg = total_value / total_size if total_size else 0.0
        new_size = position.size + signed_qty

    net = gross - fees
    trade = Trade(
        id=f"{id_prefix}-{next(_trade_seq)}",
        side=side,
        exec_price=exec_price,
        size=size,
        time=time,
        pnl=net,
        position_after=new_size,
        note=note,
    )
    return LedgerResult(
        trade=trade,
        position=Position(size=new_size, avg_price=new_avg),
        gross_pnl=gross,
        fees=fees,
        tax=tax,
        commission=commission,
        net_pnl=net,
    )


def unrealized_pnl(position: Position, mark_price: float, costs: CostConfig = DEFAULT_COSTS) -> float:
    """Mark-to-market value of the open position at `mark_price`."""
    if position.size == 0:
        return 0.0
    return (mark_price - position.avg_price) * position.size * costs.point_value
