"""Unit tests for candle file loading."""

import json

import pandas as pd
import pytest
from quant_engine.data import frame_to_candles, load_candles


def test_load_json_list(tmp_path):
    path = tmp_path / "c.json"
    path.write_text(json.dumps([
        {"time": 1, "open": 1, "high": 2, "low": 0.5, "close": 1.5, "volume": 3,
         "orderBook": {"bids": [{"price": 1.4, "volume": 1}], "asks": []}},
    ]), encoding="utf-8")
    candles = load_candles(path)
    assert candles[0]["close"] == 1.5
    assert candles[0]["orderBook"]["bids"][0]["price"] == 1.4


def test_load_json_wrapped(tmp_path):
    path = tmp_path / "c.json"
    path.write_text(json.dumps({"candles": [{"time": 1, "open": 1, "high": 1, "low": 1, "close": 1}]}),
                    encoding="utf-8")
    assert len(load_candles(path)) == 1


def test_load_csv(tmp_path):
    path = tmp_path / "c.csv"
    path.write_text("Timestamp,Open,High,Low,Close,Volume\n1,10,11,9,10.5,100\n2,10.5,12,10,11,50\n",
                    encoding="utf-8")
    candles = load_candles(path)
    assert [c["time"] for c in candles] == [1, 2]
    assert candles[1]["close"] == 11.0
    assert candles[0]["volume"] == 100.0


def test_frame_fills_missing_ohlc_from_close():
    candles = frame_to_candles(pd.DataFrame({"time": [1], "close": [5.0]}))
    assert candles[0]["open"] == 5.0
    assert candles[0]["volume"] == 0.0


def test_frame_requires_close():
    with pytest.raises(ValueError):
        frame_to_candles(pd.DataFrame({"time": [1], "open": [5.0]}))


def test_unsupported_suffix(tmp_path):
    with pytest.raises(ValueError):
        load_candles(tmp_path / "c.parquet")
