"""Unit tests for ledger.trade_ledger."""

import pytest
from quant_engine.core.types import Position, SignalAction
from quant_engine.ledger.trade_ledger import CostConfig, apply_trade, execution_price, unrealized_pnl

NO_SLIP = CostConfig(use_slippage=False)


def test_execution_price_slippage():
    costs = CostConfig(slippage=2)
    assert execution_price(SignalAction.BUY, 100.0, costs) == 102.0
    assert execution_price(SignalAction.SELL, 100.0, costs) == 98.0
    assert execution_price(SignalAction.BUY, 100.0, NO_SLIP) == 100.0


def test_adding_to_long_averages_price():
    first = apply_trade(SignalAction.BUY, 100.0, 1, "t1", Position(), NO_SLIP)
    second = apply_trade(SignalAction.BUY, 110.0, 1, "t2", first.position, NO_SLIP)
    assert second.position.size == 2
    assert second.position.avg_price == pytest.approx(105.0)
    assert second.gross_pnl == 0.0


def test_opening_trade_costs_only_fees():
    # tax = round(20000 * 200 * 1 * 0.00002) = 80
    res = apply_trade(SignalAction.BUY, 20000.0, 1, "t", Position(), NO_SLIP)
    assert res.tax == 80.0
    assert res.commission == 50.0
    assert res.net_pnl == pytest.approx(-130.0)


def test_close_long_realizes_pnl():
    pos = Position(size=1, avg_price=20000.0)
    res = apply_trade(SignalAction.SELL, 20010.0, 1, "t", pos, NO_SLIP)
    assert res.gross_pnl == pytest.approx(10 * 200)
    assert res.position.is_flat
    assert res.position.avg_price == 0.0
    # tax = round(20010 * 200 * 0.00002) = round(80.04) = 80
    assert res.net_pnl == pytest.approx(2000 - 50 - 80)


def test_reversal_long_to_short():
    pos = Position(size=1, avg_price=100.0)
    res = apply_trade(SignalAction.SELL, 110.0, 3, "t", pos, NO_SLIP)
    assert res.gross_pnl == pytest.approx(2000.0)  # only the 1 open lot closes
    assert res.position.size == -2
    assert res.position.avg_price == pytest.approx(110.0)
    # tax = round(110 * 200 * 3 * 0.00002) = round(1.32) = 1
    assert res.fees == pytest.approx(150 + 1)
    assert res.trade.position_after == -2


def test_reversal_two_lots_to_short_one():
    pos = Position(size=2, avg_price=100.0)
    res = apply_trade(SignalAction.SELL, 110.0, 3, "t", pos, NO_SLIP)
    assert res.gross_pnl == pytest.approx((110 - 100) * 2 * 200)
    assert res.position.size == -1
    assert res.position.avg_price == pytest.approx(110.0)


def test_close_short_with_slippage():
    pos = Position(size=-2, avg_price=100.0)
    res = apply_trade(SignalAction.BUY, 95.0, 1, "t", pos, CostConfig(slippage=1))
    # buy fills at 96, covers 1 of 2
    assert res.trade.exec_price == 96.0
    assert res.gross_pnl == pytest.approx(4 * 200)
    assert res.position.size == -1
    assert res.position.avg_price == pytest.approx(100.0)


def test_tax_rounds_half_up():
    costs = CostConfig(use_slippage=False, commission=0)
    # 187.5 * 200 * 0.00002 = 0.75 -> 1 ; 62.5 * 200 * 0.00002 = 0.25 -> 0
    assert apply_trade(SignalAction.BUY, 187.5, 1, "t", Position(), costs).tax == 1.0
    assert apply_trade(SignalAction.BUY, 62.5, 1, "t", Position(), costs).tax == 0.0


def test_flat_position_has_zero_avg_price():
    pos = Position()
    signed_sum = 0
    for side, price in [(SignalAction.BUY, 100.0), (SignalAction.BUY, 104.0), (SignalAction.SELL, 101.0),
                        (SignalAction.SELL, 99.0), (SignalAction.SELL, 98.0), (SignalAction.BUY, 97.0)]:
        pos = apply_trade(side, price, 1, "t", pos, NO_SLIP).position
        signed_sum += 1 if side == SignalAction.BUY else -1
        assert pos.size == signed_sum
        if pos.size == 0:
            assert pos.avg_price == 0.0
        else:
            assert pos.avg_price > 0
    assert pos.is_flat


def test_trade_ids_unique_and_prefixed():
    a = apply_trade(SignalAction.BUY, 100.0, 1, "t", Position(), NO_SLIP, id_prefix="BT")
    b = apply_trade(SignalAction.BUY, 100.0, 1, "t", Position(), NO_SLIP, id_prefix="BT")
    assert a.trade.id.startswith("BT-")
    assert a.trade.id != b.trade.id


def test_unrealized_pnl():
    assert unrealized_pnl(Position(), 100.0) == 0.0
    assert unrealized_pnl(Position(size=2, avg_price=100.0), 101.0) == pytest.approx(400.0)
    assert unrealized_pnl(Position(size=-1, avg_price=100.0), 101.0) == pytest.approx(-200.0)
