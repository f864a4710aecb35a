"""Unit tests for sandbox.context."""

import pytest
from quant_engine.core.types import Candle, OrderType, SignalAction
from quant_engine.sandbox.context import StrategyContext, sma


def _candle(t=1, close=100.0):
    return Candle(time=t, open=close, high=close, low=close, close=close, volume=1.0)


def test_sma_full_window():
    out = sma([1, 2, 3, 4, 5], 3)
    assert len(out) == 5
    assert out[:3] == [2.0, 2.0, 2.0]
    assert out[3] == pytest.approx(3.0)
    assert out[4] == pytest.approx(4.0)


def test_sma_short_input_is_mean():
    assert sma([1, 2, 3], 5) == [2.0, 2.0, 2.0]


def test_sma_empty_and_bad_period():
    assert sma([], 3) == []
    with pytest.raises(ValueError):
        sma([1, 2], 0)


def test_market_order_uses_close():
    ctx = StrategyContext()
    ctx.set_candle(_candle(t=7, close=101.5))
    oid = ctx.order("BUY", 2, reason="go")
    sig = ctx.signals[0]
    assert oid == "ORD-1"
    assert sig.action == SignalAction.BUY
    assert sig.order_type == OrderType.MARKET
    assert sig.price == 101.5
    assert sig.limit_price is None
    assert sig.size == 2
    assert sig.time == 7


def test_limit_order():
    ctx = StrategyContext()
    ctx.set_candle(_candle())
    ctx.order("sell", 1, 99.25)
    sig = ctx.signals[0]
    assert sig.action == SignalAction.SELL
    assert sig.order_type == OrderType.LIMIT
    assert sig.limit_price == 99.25
    assert sig.price == 99.25


def test_string_in_price_slot_is_reason():
    ctx = StrategyContext()
    ctx.set_candle(_candle())
    ctx.order("BUY", 1, "breakout")
    sig = ctx.signals[0]
    assert sig.reason == "breakout"
    assert sig.order_type == OrderType.MARKET


def test_order_ids_increment():
    ctx = StrategyContext()
    ctx.set_candle(_candle())
    assert [ctx.order("BUY"), ctx.order("SELL"), ctx.order("BUY")] == ["ORD-1", "ORD-2", "ORD-3"]


def test_order_without_candle_records_nothing():
    ctx = StrategyContext()
    assert ctx.order("BUY") == "ORD-1"
    assert ctx.signals == []


def test_unknown_action_rejected():
    ctx = StrategyContext()
    ctx.set_candle(_candle())
    with pytest.raises(ValueError):
        ctx.order("HOLD")
    with pytest.raises(ValueError):
        ctx.order("CLOSE_ALL")


def test_cancel_and_close_all():
    ctx = StrategyContext()
    ctx.set_candle(_candle(close=105.0))
    ctx.cancel("")
    assert ctx.signals == []
    ctx.cancel("ORD-9", "stale")
    ctx.close_all("eod")
    cancel, close = ctx.signals
    assert cancel.action == SignalAction.CANCEL
    assert cancel.order_id == "ORD-9"
    assert cancel.price is None
    assert close.action == SignalAction.CLOSE_ALL
    assert close.price == 105.0
    assert close.size == 0


def test_signal_wire_form():
    ctx = StrategyContext()
    ctx.set_candle(_candle(t="2024-01-02T09:00:00", close=float("nan")))
    ctx.order("BUY", 1)
    d = ctx.signals[0].to_dict()
    assert d["action"] == "BUY"
    assert d["price"] == 0.0
    assert d["orderId"] == "ORD-1"
    assert d["orderType"] == "MARKET"
    assert d["limitPrice"] is None
