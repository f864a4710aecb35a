"""Core: config, types, errors, logging."""

from quant_engine.core.config import load_config, Config
from quant_engine.core.types import (
    Candle,
    Signal,
    SignalAction,
    OrderType,
    Position,
    Trade,
    Task,
    TaskKind,
    TaskResult,
    TaskStatus,
)
from quant_engine.core.errors import (
    EngineError,
    EnvironmentLoadError,
    LoadError,
    ResolutionError,
    StrategyRuntimeError,
)
from quant_engine.core.logger import setup_logging

__all__ = [
    "load_config",
    "Config",
    "Candle",
    "Signal",
    "SignalAction",
    "OrderType",
    "Position",
    "Trade",
    "Task",
    "TaskKind",
    "TaskResult",
    "TaskStatus",
    "EngineError",
    "EnvironmentLoadError",
    "LoadError",
    "ResolutionError",
    "StrategyRuntimeError",
    "setup_logging",
]
