"""
Execution sandbox: load user code, resolve its entry point, replay candles
through it one bar at a time, and return the signal log or a single error.
"""

from __future__ import annotations
import logging
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Union

from quant_engine.core.errors import EngineError, StrategyRuntimeError
from quant_engine.core.types import Candle, Signal
from quant_engine.sandbox.context import StrategyContext
from quant_engine.sandbox.loader import (
    ResolvedStrategy,
    StrategyKind,
    call_arity,
    load_user_code,
    resolve_strategy,
)
from quant_engine.strategies.base import BaseStrategy

logger = logging.getLogger("quant_engine.sandbox")

CandleInput = Union[Candle, dict]


@dataclass
class SandboxResult:
    """Either the full signal log or an error trace, never both."""
    signals: Optional[List[Signal]] = field(default=None)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_wire(self) -> list:
        if self.error is not None:
            return [{"error": self.error}]
        return [s.to_dict() for s in self.signals or []]


def normalize_candles(candles: Iterable[CandleInput]) -> tuple[list[dict], list[Candle]]:
    """Return (raw dicts, Candle objects) for the same series."""
    raw: list[dict] = []
    objs: list[Candle] = []
    for c in candles:
        if isinstance(c, Candle):
            objs.append(c)
            raw.append(c.to_dict())
        else:
            objs.append(Candle.from_dict(c))
            raw.append(dict(c))
    return raw, objs


def inject_context(instance: Any, ctx: StrategyContext) -> None:
    """Give a class-form strategy its trading API."""
    if isinstance(instance, BaseStrategy):
        instance.bind_context(ctx)
        return
    instance.order = ctx.order
    instance.close_all = ctx.close_all
    instance.cancel = ctx.cancel
    if not hasattr(instance, "sma"):
        instance.sma = ctx.sma


def inject_module_helpers(namespace: dict, ctx: StrategyContext) -> None:
    """Module-level order/cancel/close_all/sma for function strategies, unless user code defined them."""
    helpers = {
        "order": ctx.order,
        "cancel": ctx.cancel,
        "close_all": ctx.close_all,
        "sma": ctx.sma,
    }
    for name, fn in helpers.items():
        if name not in namespace:
            namespace[name] = fn


class ExecutionSandbox:
    """
    One sandbox per task. Owns its namespace, context and candle window; nothing
    is shared with other sandboxes.
    """

    def __init__(
        self,
        code: str,
        candles: Iterable[CandleInput],
        params: Optional[dict] = None,
        max_lookback: Optional[int] = None,
    ):
        self.code = code
        self.candles = list(candles)
        self.params = dict(params or {})
        self.max_lookback = int(max_lookback) if max_lookback else None
        self.ctx = StrategyContext()
        self.resolved: Optional[ResolvedStrategy] = None

    def run(self) -> SandboxResult:
        try:
            signals = self._run()
        except EngineError as e:
            logger.warning("Sandbox run failed: %s", type(e).__name__)
            return SandboxResult(error=e.trace or traceback.format_exc())
        except (Exception, SystemExit):
            logger.warning("Sandbox run failed with unexpected error")
            return SandboxResult(error=traceback.format_exc())
        return SandboxResult(signals=signals)

    def _run(self) -> List[Signal]:
        raw, bars = normalize_candles(self.candles)
        loaded = load_user_code(self.code, raw, self.params)
        self.resolved = resolve_strategy(loaded)
        ctx = self.ctx

        try:
            entry = self._prepare_entry(loaded.namespace, ctx)
            window: List[Candle] = []
            for bar in bars:
                window.append(bar)
                if self.max_lookback and len(window) > self.max_lookback:
                    window = window[-self.max_lookback:]
                ctx.set_candle(bar)
                entry(window)
        except (Exception, SystemExit):
            raise StrategyRuntimeError.from_current(f"strategy {self.resolved.name} raised during replay")

        logger.info("Replayed %d bars through %s: %d signals", len(bars), self.resolved.name, len(ctx.signals))
        return list(ctx.signals)

    def _prepare_entry(self, namespace: dict, ctx: StrategyContext) -> Callable[[List[Candle]], Any]:
        """Instantiate if needed, run on_start once, and return the per-bar callable."""
        resolved = self.resolved
        if resolved.kind == StrategyKind.CLASS_INSTANCE:
            instance = self._instantiate(resolved.handle)
            inject_context(instance, ctx)
            start = getattr(instance, "on_start", None)
            if callable(start):
                self._call_start(start, call_arity(start, 0), ctx)
            return instance.on_tick

        inject_module_helpers(namespace, ctx)
        if resolved.on_start is not None:
            self._call_start(resolved.on_start, resolved.on_start_arity, ctx)
        fn = resolved.handle
        if resolved.kind == StrategyKind.FUNCTION_NO_CTX:
            return fn
        return lambda window: fn(window, ctx)

    def _instantiate(self, cls: type) -> Any:
        try:
            return cls(**self.params)
        except TypeError as first:
            try:
                return cls()
            except TypeError:
                raise first

    @staticmethod
    def _call_start(start: Callable, arity: int, ctx: StrategyContext) -> None:
        if arity == 0:
            start()
        elif arity == 1:
            start(ctx)


def run_strategy(
    code: str,
    candles: Iterable[CandleInput],
    params: Optional[dict] = None,
    max_lookback: Optional[int] = None,
) -> SandboxResult:
    return ExecutionSandbox(code, candles, params, max_lookback).run()
