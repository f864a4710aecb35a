"""Optional base class for class-form strategies."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, TYPE_CHECKING

from quant_engine.core.types import Candle

if TYPE_CHECKING:
    from quant_engine.sandbox.context import StrategyContext


class BaseStrategy(ABC):
    """
    Strategy that receives its trading context explicitly. The sandbox calls
    bind_context() once after construction; order/cancel/close_all/sma then
    delegate to it. Position tracking is left to the subclass.
    """

    ctx: Optional[StrategyContext] = None

    def bind_context(self, ctx: StrategyContext) -> None:
        self.ctx = ctx

    @abstractmethod
    def on_tick(self, candles: List[Candle]) -> None:
        """Called once per bar with the lookback window, newest last."""
        pass

    def order(self, action, size=1, price=None, reason=""):
        return self._require_ctx().order(action, size, price, reason)

    def cancel(self, order_id, reason=""):
        return self._require_ctx().cancel(order_id, reason)

    def close_all(self, reason=""):
        return self._require_ctx().close_all(reason)

    def sma(self, data: Sequence[float], period: int) -> List[float]:
        return self._require_ctx().sma(data, period)

    def _require_ctx(self) -> StrategyContext:
        if self.ctx is None:
            raise RuntimeError(f"{type(self).__name__} has no trading context bound")
        return self.ctx
