"""Backtesting: replay a signal log through the trade ledger."""

from quant_engine.backtesting.engine import BacktestEngine, BacktestResult

__all__ = ["BacktestEngine", "BacktestResult"]
