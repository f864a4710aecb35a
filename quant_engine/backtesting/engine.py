"""
Backtest engine: applies a sandbox signal log to the trade ledger and tracks
balance, mark-to-market equity and performance.

Fills are immediate at the signal price (the limit price for LIMIT orders).
CLOSE_ALL flattens the whole position; CANCEL has no ledger effect because
orders never rest.
"""

from __future__ import annotations
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from quant_engine.analytics.metrics import PerformanceMetrics, compute_metrics
from quant_engine.core.types import Candle, Position, Signal, SignalAction, Trade
from quant_engine.ledger.trade_ledger import DEFAULT_COSTS, CostConfig, apply_trade, unrealized_pnl

logger = logging.getLogger("quant_engine.backtest")


@dataclass
class BacktestResult:
    """Ledger trades, equity curve and metrics for one signal log."""
    trades: List[Trade] = field(default_factory=list)
    equity_curve: List[float] = field(default_factory=list)
    position: Position = field(default_factory=Position)
    balance: float = 0.0
    metrics: Optional[PerformanceMetrics] = None


class BacktestEngine:
    def __init__(self, costs: CostConfig = DEFAULT_COSTS, initial_capital: float = 1_000_000.0):
        self.costs = costs
        self.initial_capital = initial_capital

    def run(
        self,
        signals: Iterable[Union[Signal, dict]],
        candles: Optional[Iterable[Union[Candle, dict]]] = None,
    ) -> BacktestResult:
        """
        With candles, equity is marked at each bar's close after that bar's
        signals; without, it is marked at each signal's price.
        """
        sigs = [s if isinstance(s, Signal) else Signal.from_dict(s) for s in signals]
        self._position = Position()
        self._balance = self.initial_capital
        self._trades: List[Trade] = []
        self._closing_pnls: List[float] = []
        self._fees = 0.0
        equity = [self.initial_capital]

        if candles is None:
            for sig in sigs:
                self._apply(sig)
                mark = sig.price if sig.price is not None else self._position.avg_price
                equity.append(self._equity(mark))
        else:
            by_time = defaultdict(list)
            for sig in sigs:
                by_time[sig.time].append(sig)
            for c in candles:
                bar = c if isinstance(c, Candle) else Candle.from_dict(c)
                for sig in by_time.pop(bar.time, []):
                    self._apply(sig)
                equity.append(self._equity(bar.close))
            if by_time:
                logger.warning("%d signals had no matching candle time and were not applied",
                               sum(len(v) for v in by_time.values()))

        metrics = compute_metrics(
            trade_pnls=[t.pnl for t in self._trades],
            closing_pnls=self._closing_pnls,
            total_fees=self._fees,
            equity_curve=equity,
            initial_capital=self.initial_capital,
        )
        return BacktestResult(
            trades=self._trades,
            equity_curve=equity,
            position=self._position,
            balance=self._balance,
            metrics=metrics,
        )

    def _apply(self, sig: Signal) -> None:
        if sig.action == SignalAction.CANCEL:
            logger.debug("Cancel %s ignored (orders fill immediately)", sig.order_id)
            return
        if sig.action == SignalAction.CLOSE_ALL:
            if self._position.is_flat or sig.price is None:
                return
            side = SignalAction.SELL if self._position.size > 0 else SignalAction.BUY
            self._fill(side, sig.price, abs(self._position.size), sig.time, sig.reason or "close_all")
            return
        if sig.price is None or not sig.size:
            return
        self._fill(sig.action, sig.price, sig.size, sig.time, sig.reason)

    def _fill(self, side: SignalAction, price: float, size: float, time, note: str) -> None:
        before = self._position
        res = apply_trade(side, price, size, time, before, self.costs, id_prefix="BT", note=note)
        self._position = res.position
        self._balance += res.net_pnl
        self._fees += res.fees
        self._trades.append(res.trade)
        closed = (before.size > 0 and side == SignalAction.SELL) or (before.size < 0 and side == SignalAction.BUY)
        if closed:
            self._closing_pnls.append(res.net_pnl)

    def _equity(self, mark: float) -> float:
        return self._balance + unrealized_pnl(self._position, mark, self.costs)
