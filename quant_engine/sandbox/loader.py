"""
Load user code into an isolated namespace and resolve which entry-point shape
it implements. Resolution happens once per task; the runner never re-inspects.
"""

from __future__ import annotations
import inspect
import json
import logging
import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pandas as pd

from quant_engine.core.errors import LoadError, ResolutionError
from quant_engine.strategies.base import BaseStrategy

logger = logging.getLogger("quant_engine.sandbox.loader")

SANDBOX_MODULE = "__strategy__"

# Engine-provided names that are never taken as the user's strategy class.
BUILTIN_CLASS_NAMES = frozenset({
    "StrategyContext", "CandleObj", "Candle", "BaseStrategy",
    "TradingEnv", "CustomTradingEnv", "DQNAgent", "QNetwork", "MicroModel",
    "ReplayBuffer", "NumpyEncoder", "type",
})


class StrategyKind(str, Enum):
    FUNCTION_NO_CTX = "FUNCTION_NO_CTX"
    FUNCTION_WITH_CTX = "FUNCTION_WITH_CTX"
    CLASS_INSTANCE = "CLASS_INSTANCE"


@dataclass
class LoadedCode:
    """Namespace after user code ran, plus the names it introduced or rebound, in order."""
    namespace: Dict[str, Any]
    introduced: List[str]

    def get(self, name: str) -> Any:
        return self.namespace.get(name) if name in self.introduced else None


@dataclass(frozen=True)
class ResolvedStrategy:
    kind: StrategyKind
    handle: Any  # function for FUNCTION_*, class for CLASS_INSTANCE
    name: str
    on_start: Optional[Callable] = None
    on_start_arity: int = 0


def call_arity(fn: Callable, default: int) -> int:
    """Number of declared parameters; `default` if the signature can't be read."""
    try:
        return len(inspect.signature(fn).parameters)
    except (TypeError, ValueError):
        return default


def base_namespace(raw_data: Optional[list] = None, params: Optional[dict] = None) -> Dict[str, Any]:
    return {
        "__name__": SANDBOX_MODULE,
        "json": json,
        "math": math,
        "random": random,
        "np": np,
        "pd": pd,
        "raw_data": raw_data if raw_data is not None else [],
        "params": dict(params or {}),
        "BaseStrategy": BaseStrategy,
    }


def load_user_code(
    code: str,
    raw_data: Optional[list] = None,
    params: Optional[dict] = None,
    filename: str = "<strategy>",
) -> LoadedCode:
    """Compile and execute `code` in a fresh namespace. Any failure raises LoadError."""
    namespace = base_namespace(raw_data, params)
    ids_before = {k: id(v) for k, v in namespace.items()}
    try:
        compiled = compile(code or "", filename, "exec")
        exec(compiled, namespace)
    except (Exception, SystemExit):
        raise LoadError.from_current(f"failed to load {filename}")

    introduced = [
        k for k, v in namespace.items()
        if k != "__builtins__" and (k not in ids_before or id(v) != ids_before[k])
    ]
    logger.debug("Loaded %s, introduced: %s", filename, ", ".join(introduced) or "-")
    return LoadedCode(namespace=namespace, introduced=introduced)


def user_classes(loaded: LoadedCode) -> List[type]:
    """Classes defined by the user code itself, in definition order."""
    classes = []
    for name in loaded.introduced:
        obj = loaded.namespace[name]
        if isinstance(obj, type) and name not in BUILTIN_CLASS_NAMES and obj.__module__ == SANDBOX_MODULE:
            classes.append(obj)
    return classes


def resolve_strategy(loaded: LoadedCode) -> ResolvedStrategy:
    """
    Priority: on_tick function, strategy function, last class with on_tick,
    last user class. Functions taking one parameter get no context.
    """
    on_start = loaded.get("on_start")
    on_start = on_start if callable(on_start) else None
    start_arity = call_arity(on_start, 0) if on_start else 0

    for fn_name in ("on_tick", "strategy"):
        fn = loaded.get(fn_name)
        if fn is not None and callable(fn) and not isinstance(fn, type):
            kind = StrategyKind.FUNCTION_NO_CTX if call_arity(fn, 2) <= 1 else StrategyKind.FUNCTION_WITH_CTX
            logger.info("Resolved function strategy %s (%s)", fn_name, kind.value)
            return ResolvedStrategy(kind=kind, handle=fn, name=fn_name, on_start=on_start, on_start_arity=start_arity)

    classes = user_classes(loaded)
    with_tick = [c for c in classes if hasattr(c, "on_tick")]
    target = with_tick[-1] if with_tick else (classes[-1] if classes else None)
    if target is None:
        raise ResolutionError("No strategy class found.")
    logger.info("Resolved class strategy %s", target.__name__)
    return ResolvedStrategy(kind=StrategyKind.CLASS_INSTANCE, handle=target, name=target.__name__)
