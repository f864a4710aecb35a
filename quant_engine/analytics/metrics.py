"""
Performance metrics over ledger trades: net PnL, return, win rate, profit
factor, expectancy, max drawdown and fees.
Only trades that realized PnL (closes/reversals) count as wins or losses.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np


@dataclass
class PerformanceMetrics:
    """Aggregate performance of one ledger replay."""
    net_pnl: float
    total_return_pct: float
    max_drawdown_pct: float
    win_rate: float
    profit_factor: float
    expectancy: float
    total_fees: float
    total_trades: int
    closing_trades: int
    winning_trades: int
    losing_trades: int
    avg_win: float
    avg_loss: float


def max_drawdown(equity_curve: Sequence[float]) -> float:
    """Max drawdown in percent of the running peak (negative, e.g. -15.0)."""
    if len(equity_curve) == 0:
        return 0.0
    arr = np.asarray(equity_curve, dtype=float)
    peak = np.maximum.accumulate(arr)
    dd = (arr - peak) / np.where(peak != 0, peak, 1)
    return float(np.min(dd)) * 100.0


def win_rate(pnls: Sequence[float]) -> float:
    """Fraction of entries with positive PnL."""
    if not pnls:
        return 0.0
    return sum(1 for p in pnls if p > 0) / len(pnls)


def profit_factor(pnls: Sequence[float]) -> float:
    """Gross profit / gross loss; inf when there are wins and no losses."""
    wins = sum(p for p in pnls if p > 0)
    losses = sum(-p for p in pnls if p < 0)
    if losses <= 0:
        return float("inf") if wins > 0 else 0.0
    return wins / losses


def expectancy(pnls: Sequence[float]) -> float:
    if not pnls:
        return 0.0
    return sum(pnls) / len(pnls)


def compute_metrics(
    trade_pnls: Sequence[float],
    closing_pnls: Sequence[float],
    total_fees: float,
    equity_curve: Sequence[float],
    initial_capital: float,
) -> PerformanceMetrics:
    """
    trade_pnls: net PnL of every ledger trade (opens carry only their fees).
    closing_pnls: net PnL of trades that closed quantity.
    """
    net = float(sum(trade_pnls))
    wins = [p for p in closing_pnls if p > 0]
    losses = [p for p in closing_pnls if p < 0]
    return PerformanceMetrics(
        net_pnl=net,
        total_return_pct=(net / initial_capital * 100.0) if initial_capital else 0.0,
        max_drawdown_pct=max_drawdown(equity_curve),
        win_rate=win_rate(list(closing_pnls)),
        profit_factor=profit_factor(list(closing_pnls)),
        expectancy=expectancy(list(closing_pnls)),
        total_fees=float(total_fees),
        total_trades=len(trade_pnls),
        closing_trades=len(closing_pnls),
        winning_trades=len(wins),
        losing_trades=len(losses),
        avg_win=sum(wins) / len(wins) if wins else 0.0,
        avg_loss=sum(losses) / len(losses) if losses else 0.0,
    )


def summarize(metrics: PerformanceMetrics) -> List[str]:
    """Human-readable lines for CLI output."""
    m = metrics
    return [
        f"Trades: {m.total_trades} (closing: {m.closing_trades}, wins: {m.winning_trades}, losses: {m.losing_trades})",
        f"Net PnL: {m.net_pnl:,.0f} ({m.total_return_pct:.2f}%)",
        f"Fees: {m.total_fees:,.0f}",
        f"Max drawdown: {m.max_drawdown_pct:.2f}%",
        f"Win rate: {m.win_rate * 100:.1f}%",
        f"Profit factor: {m.profit_factor:.2f}",
        f"Expectancy: {m.expectancy:,.1f} per closing trade",
    ]
