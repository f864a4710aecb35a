"""Unit tests for core.sanitize and core.errors."""

import json

import numpy as np
from quant_engine.core.errors import EngineError, StrategyRuntimeError
from quant_engine.core.sanitize import safe_float, safe_number, sanitize, to_json


def test_safe_float():
    assert safe_float(float("nan")) == 0.0
    assert safe_float(float("inf")) == 0.0
    assert safe_float("x") == 0.0
    assert safe_float("1.5") == 1.5


def test_safe_number_keeps_ints():
    assert safe_number(2) == 2 and isinstance(safe_number(2), int)
    assert isinstance(safe_number(2.0), int)
    assert safe_number(2.5) == 2.5
    assert safe_number(np.int64(3)) == 3


def test_sanitize_nested():
    assert sanitize({"a": [1.0, float("-inf")], "b": (np.float64("nan"),)}) == {"a": [1.0, 0.0], "b": [0.0]}


def test_to_json_numpy():
    out = json.loads(to_json({"w": np.array([[1.0, np.nan]]), "n": np.int32(4)}))
    assert out == {"w": [[1.0, 0.0]], "n": 4}


def test_error_trace_captured():
    try:
        try:
            {}["missing"]
        except KeyError:
            raise StrategyRuntimeError.from_current("replay failed")
    except EngineError as e:
        assert "KeyError" in e.trace
        assert str(e) == e.trace


def test_error_without_trace_uses_message():
    assert str(EngineError("plain")) == "plain"
