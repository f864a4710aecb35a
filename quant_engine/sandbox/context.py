"""
Strategy context: the trading API user code calls during replay.

The context records signals only. It does not track the strategy's position;
user code keeps its own (e.g. `self.position`, or a module-level variable).
"""

from __future__ import annotations
import logging
from typing import Any, List, Optional, Sequence

from quant_engine.core.types import Candle, OrderType, Signal, SignalAction

logger = logging.getLogger("quant_engine.sandbox.context")


def sma(data: Sequence[float], period: int) -> List[float]:
    """
    Simple moving average, same length as `data`.
    Shorter than `period`: the whole-input mean repeated. Otherwise the first
    full-window mean fills the first `period` slots, then a running window mean.
    """
    values = [float(x) for x in data]
    n = len(values)
    if period <= 0:
        raise ValueError(f"sma period must be positive, got {period}")
    if n == 0:
        return []
    if n < period:
        mean = sum(values) / n
        return [mean] * n

    window_sum = sum(values[:period])
    first = window_sum / period
    out = [first] * (period - 1)
    out.append(first)
    for i in range(period, n):
        window_sum = window_sum - values[i - period] + values[i]
        out.append(window_sum / period)
    return out


class StrategyContext:
    """Signal emitter bound to one sandbox run. Order ids are ORD-1, ORD-2, ..."""

    def __init__(self):
        self.signals: List[Signal] = []
        self.current_candle: Optional[Candle] = None
        self._order_counter = 0

    def set_candle(self, candle: Candle) -> None:
        self.current_candle = candle

    def order(self, action: Any, size: float = 1, price: Any = None, reason: str = "") -> str:
        """
        Emit a BUY/SELL. No price means MARKET at the current close; a price means
        LIMIT at that price. `order("BUY", 1, "why")` is read as a reason, not a price.
        """
        if isinstance(price, str) and reason == "":
            reason = price
            price = None
        self._order_counter += 1
        order_id = f"ORD-{self._order_counter}"
        if self.current_candle is None:
            return order_id

        side = SignalAction(str(getattr(action, "value", action)).upper())
        if side not in (SignalAction.BUY, SignalAction.SELL):
            raise ValueError(f"order() action must be BUY or SELL, got {action!r}")

        order_type = OrderType.MARKET
        limit_price = None
        if price is not None:
            try:
                limit_price = float(price)
                order_type = OrderType.LIMIT
            except (TypeError, ValueError):
                logger.debug("Unparseable limit price %r, sending MARKET", price)
                limit_price = None

        self.signals.append(Signal(
            time=self.current_candle.time,
            action=side,
            price=limit_price if limit_price is not None else self.current_candle.close,
            size=size,
            reason=reason,
            order_id=order_id,
            order_type=order_type,
            limit_price=limit_price,
        ))
        return order_id

    def cancel(self, order_id: str, reason: str = "") -> None:
        if self.current_candle is None or not order_id:
            return
        self.signals.append(Signal(
            time=self.current_candle.time,
            action=SignalAction.CANCEL,
            price=None,
            size=0,
            reason=reason,
            order_id=order_id,
        ))

    def close_all(self, reason: str = "") -> None:
        if self.current_candle is None:
            return
        self.signals.append(Signal(
            time=self.current_candle.time,
            action=SignalAction.CLOSE_ALL,
            price=self.current_candle.close,
            size=0,
            reason=reason,
        ))

    def sma(self, data: Sequence[float], period: int) -> List[float]:
        return sma(data, period)
