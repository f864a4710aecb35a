"""
Core data types for candles, signals, positions, trades, RL transitions and tasks.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

import numpy as np

from quant_engine.core.sanitize import safe_float, safe_number


class SignalAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    CLOSE_ALL = "CLOSE_ALL"
    CANCEL = "CANCEL"


class OrderType(str, Enum):
    MARKET = "MARKET"
    LIMIT = "LIMIT"


class TaskKind(str, Enum):
    RUN_STRATEGY = "RUN_STRATEGY"
    TRAIN_RL = "TRAIN_RL"


class TaskStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    DONE = "DONE"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"  # never claimed because the batch was cancelled


MAX_BOOK_LEVELS = 5


@dataclass(frozen=True)
class OrderBook:
    """Top-of-book snapshot, best levels first. Levels are {"price", "volume"} dicts."""
    bids: List[dict] = field(default_factory=list)
    asks: List[dict] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["OrderBook"]:
        if not data:
            return None
        return cls(
            bids=list(data.get("bids") or [])[:MAX_BOOK_LEVELS],
            asks=list(data.get("asks") or [])[:MAX_BOOK_LEVELS],
        )


@dataclass(frozen=True)
class Candle:
    """OHLCV bar with optional level-2 snapshot."""
    time: Any
    open: float
    high: float
    low: float
    close: float
    volume: float
    order_book: Optional[OrderBook] = None

    @property
    def bids(self) -> List[dict]:
        return self.order_book.bids if self.order_book else []

    @property
    def asks(self) -> List[dict]:
        return self.order_book.asks if self.order_book else []

    @classmethod
    def from_dict(cls, data: dict) -> "Candle":
        return cls(
            time=data["time"],
            open=float(data["open"]),
            high=float(data["high"]),
            low=float(data["low"]),
            close=float(data["close"]),
            volume=float(data.get("volume", 0.0)),
            order_book=OrderBook.from_dict(data.get("orderBook") or data.get("order_book")),
        )

    def to_dict(self) -> dict:
        out = {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }
        if self.order_book is not None:
            out["orderBook"] = {"bids": list(self.order_book.bids), "asks": list(self.order_book.asks)}
        return out


@dataclass(frozen=True)
class Signal:
    """Trade intent emitted by strategy code during replay."""
    time: Any
    action: SignalAction
    price: Optional[float]
    size: float
    reason: str = ""
    order_id: Optional[str] = None
    order_type: Optional[OrderType] = None
    limit_price: Optional[float] = None

    def to_dict(self) -> dict:
        """Wire form. NaN/inf become 0; keys follow the dashboard's camelCase."""
        out = {
            "time": self.time,
            "action": self.action.value,
            "price": safe_float(self.price) if self.price is not None else None,
            "size": safe_number(self.size),
            "reason": self.reason,
        }
        if self.order_id is not None:
            out["orderId"] = self.order_id
        if self.order_type is not None:
            out["orderType"] = self.order_type.value
            out["limitPrice"] = safe_float(self.limit_price) if self.limit_price is not None else None
        return out

    @classmethod
    def from_dict(cls, data: dict) -> "Signal":
        order_type = data.get("orderType")
        price = data.get("price")
        limit_price = data.get("limitPrice")
        return cls(
            time=data.get("time"),
            action=SignalAction(data["action"]),
            price=float(price) if price is not None else None,
            size=data.get("size", 0),
            reason=data.get("reason") or "",
            order_id=data.get("orderId"),
            order_type=OrderType(order_type) if order_type else None,
            limit_price=float(limit_price) if limit_price is not None else None,
        )


@dataclass(frozen=True)
class Position:
    """Net position in lots. Flat positions always carry avg_price 0."""
    size: float = 0
    avg_price: float = 0.0

    @property
    def is_flat(self) -> bool:
        return self.size == 0


@dataclass(frozen=True)
class Trade:
    """Ledger record of one executed order or close event."""
    id: str
    side: SignalAction
    exec_price: float
    size: float
    time: Any
    pnl: float
    position_after: float
    note: str = ""


@dataclass
class Transition:
    """One unit of RL experience."""
    state: List[float]
    action: int
    reward: float
    next_state: List[float]
    done: bool


@dataclass(frozen=True)
class NetworkWeights:
    """Read-only snapshot of a single-hidden-layer network."""
    W1: np.ndarray
    b1: np.ndarray
    W2: np.ndarray
    b2: np.ndarray

    def to_lists(self) -> dict:
        return {
            "W1": self.W1.tolist(), "b1": self.b1.tolist(),
            "W2": self.W2.tolist(), "b2": self.b2.tolist(),
        }


@dataclass
class TrainingStep:
    """Per-episode training record (reported every 5th episode and the last)."""
    episode: int
    total_reward: float
    epsilon: float
    win_rate: float

    def to_dict(self) -> dict:
        return {
            "episode": int(self.episode),
            "totalReward": safe_float(self.total_reward),
            "epsilon": safe_float(self.epsilon),
            "winRate": safe_float(self.win_rate),
        }


@dataclass
class TrainingResult:
    history: List[TrainingStep] = field(default_factory=list)
    exported_policy_code: str = ""
    weights: Optional[NetworkWeights] = None

    def to_dict(self) -> dict:
        return {
            "history": [h.to_dict() for h in self.history],
            "exportedPolicyCode": self.exported_policy_code,
        }


@dataclass
class Task:
    """Unit of dispatcher work. Mutated only by the worker that claims it."""
    id: str
    kind: TaskKind
    payload: Any
    status: TaskStatus = TaskStatus.PENDING
    on_episode: Optional[Callable[[dict], None]] = None


@dataclass
class TaskResult:
    """Outcome of one task: a signal log, a training result, or an error trace."""
    task_id: str
    kind: TaskKind
    status: TaskStatus
    signals: Optional[List[Signal]] = None
    training: Optional[TrainingResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == TaskStatus.DONE

    def to_dict(self) -> dict:
        if self.error is not None:
            return {"error": self.error}
        if self.kind == TaskKind.TRAIN_RL:
            return self.training.to_dict() if self.training else {}
        return {"signals": [s.to_dict() for s in (self.signals or [])]}
