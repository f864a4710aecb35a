"""Sandbox: user strategy loading, entry-point resolution and candle replay."""

from quant_engine.sandbox.context import StrategyContext, sma
from quant_engine.sandbox.loader import (
    LoadedCode,
    ResolvedStrategy,
    StrategyKind,
    load_user_code,
    resolve_strategy,
)
from quant_engine.sandbox.runner import ExecutionSandbox, SandboxResult, run_strategy

__all__ = [
    "StrategyContext",
    "sma",
    "LoadedCode",
    "ResolvedStrategy",
    "StrategyKind",
    "load_user_code",
    "resolve_strategy",
    "ExecutionSandbox",
    "SandboxResult",
    "run_strategy",
]
