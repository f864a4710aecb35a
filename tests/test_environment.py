"""Unit tests for rl.environment."""

import logging

import pytest
from quant_engine.core.errors import EnvironmentLoadError
from quant_engine.rl.environment import (
    TradingEnv,
    WARMUP_STEPS,
    build_environment,
    indicator_frame,
    load_custom_env_class,
)


def rising(n, start=100.0):
    return [{"time": i, "open": start + i, "high": start + i, "low": start + i, "close": start + i, "volume": 1}
            for i in range(n)]


CUSTOM_ENV = """
class CustomTradingEnv:
    def __init__(self, candles):
        self.candles = candles
        self.i = 0

    def reset(self):
        self.i = 0
        return self.get_state()

    def get_state(self):
        return [float(self.i), 1.0]

    def step(self, action):
        self.i += 1
        return self.get_state(), 0.0, self.i >= len(self.candles) - 1
"""


def test_indicator_frame_has_no_gaps():
    df = indicator_frame(rising(40))
    assert not df[["sma_fast", "sma_slow", "rsi"]].isna().any().any()


def test_reset_state():
    env = TradingEnv(rising(40))
    state = env.reset()
    assert env.current_step == WARMUP_STEPS
    assert len(state) == 3
    assert state[2] == 0.0


def test_buy_then_sell_rewards():
    env = TradingEnv(rising(40))
    env.reset()
    _, r1, done = env.step(1)
    assert r1 == pytest.approx(-0.1 / 1000)
    assert not done
    state, r2, _ = env.step(2)
    # closes rise by 1 per bar: long 1 point -> 200, then flip short
    assert r2 == pytest.approx((200 - 0.1) / 1000)
    assert env.position == -1
    assert state[2] == -1.0


def test_last_step_force_closes():
    env = TradingEnv(rising(35))
    env.reset()
    env.step(1)  # long at 130
    done = False
    rewards = []
    while not done:
        _, r, done = env.step(0)
        rewards.append(r)
    # final step closes at the bar price it stepped on (133): 3 points
    assert rewards[-1] == pytest.approx((3 * 200 - 0.1) / 1000)


def test_short_series_clamps_index():
    env = TradingEnv(rising(10))
    state = env.reset()
    assert env.current_step == 9
    assert len(state) == 3
    _, _, done = env.step(0)
    assert done


def test_custom_env_used():
    env = build_environment(rising(5), CUSTOM_ENV)
    assert type(env).__name__ == "CustomTradingEnv"
    assert env.reset() == [0.0, 1.0]


def test_custom_env_falls_back(caplog):
    with caplog.at_level(logging.WARNING, logger="quant_engine"):
        env = build_environment(rising(40), "class Broken(:\n")
    assert isinstance(env, TradingEnv)
    assert "using default" in caplog.text


def test_custom_env_needs_env_methods():
    with pytest.raises(EnvironmentLoadError):
        load_custom_env_class("class NotAnEnv:\n    pass\n")


def test_any_class_with_env_methods_accepted():
    code = CUSTOM_ENV.replace("CustomTradingEnv", "MyEnv")
    assert load_custom_env_class(code).__name__ == "MyEnv"


def test_custom_env_missing_method_falls_back():
    code = CUSTOM_ENV.replace("def get_state(self):", "def features(self):").replace(
        "return self.get_state()", "return self.features()")
    env = build_environment(rising(40), code)
    assert isinstance(env, TradingEnv)
