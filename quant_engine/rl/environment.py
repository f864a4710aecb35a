"""
Trading environments for DQN training.

Contract: reset() -> state, step(action) -> (next_state, reward, done),
get_state() -> list[float]. Actions: 0 = hold, 1 = buy, 2 = sell.
"""

from __future__ import annotations
import logging
from typing import List, Optional, Protocol, Tuple, runtime_checkable

import numpy as np
import pandas as pd

from quant_engine.core.errors import EnvironmentLoadError
from quant_engine.sandbox.loader import load_user_code, user_classes

logger = logging.getLogger("quant_engine.rl.environment")

# POINT_VALUE_PROXY converts price points to currency; REWARD_SCALE keeps the
# network targets near [-1, 1].
POINT_VALUE_PROXY = 200.0
REWARD_SCALE = 1000.0
STEP_PENALTY = -0.1
SMA_FAST = 10
SMA_SLOW = 30
RSI_PERIOD = 14
WARMUP_STEPS = SMA_SLOW

CUSTOM_ENV_NAME = "CustomTradingEnv"
ENV_METHODS = ("reset", "step", "get_state")


@runtime_checkable
class Environment(Protocol):
    def reset(self) -> List[float]: ...

    def step(self, action: int) -> Tuple[List[float], float, bool]: ...

    def get_state(self) -> List[float]: ...


def indicator_frame(candles: List[dict]) -> pd.DataFrame:
    """Closes with sma_fast, sma_slow and rsi; leading gaps back-filled, the rest zeroed."""
    df = pd.DataFrame(candles)
    df["close"] = df["close"].astype(float)
    df["sma_fast"] = df["close"].rolling(SMA_FAST).mean()
    df["sma_slow"] = df["close"].rolling(SMA_SLOW).mean()
    delta = df["close"].diff()
    gain = delta.where(delta > 0, 0.0).rolling(window=RSI_PERIOD).mean()
    loss = (-delta.where(delta < 0, 0.0)).rolling(window=RSI_PERIOD).mean()
    rs = gain / loss
    df["rsi"] = 100 - (100 / (1 + rs))
    df = df.replace([np.inf, -np.inf], np.nan)
    return df.bfill().fillna(0)


class TradingEnv:
    """
    Default environment. State: [rsi / 100, (sma_fast - sma_slow) / close * 1000, position].
    Single-lot long/short/flat; reversing realizes PnL before flipping; the last
    step force-closes any open position.
    """

    def __init__(self, candles_data: List[dict]):
        if not candles_data:
            raise ValueError("TradingEnv needs at least one candle")
        self.candles = candles_data
        self.df = indicator_frame(candles_data)
        self._close = self.df["close"].to_numpy(dtype=float)
        self._rsi = self.df["rsi"].to_numpy(dtype=float)
        self._fast = self.df["sma_fast"].to_numpy(dtype=float)
        self._slow = self.df["sma_slow"].to_numpy(dtype=float)
        self.reset()

    def __len__(self) -> int:
        return len(self.df)

    def reset(self) -> List[float]:
        self.current_step = WARMUP_STEPS
        self.position = 0
        self.entry_price = 0.0
        self.done = False
        return self.get_state()

    def get_state(self) -> List[float]:
        if self.current_step >= len(self.df):
            self.current_step = len(self.df) - 1
        i = self.current_step
        close = self._close[i]
        sma_diff = (self._fast[i] - self._slow[i]) / close * 1000 if close else 0.0
        return [float(self._rsi[i]) / 100.0, float(sma_diff), float(self.position)]

    def step(self, action: int) -> Tuple[List[float], float, bool]:
        price = float(self._close[self.current_step])
        reward = 0.0

        if action == 1:
            if self.position == -1:
                reward += (self.entry_price - price) * POINT_VALUE_PROXY
                self.position = 0
            if self.position == 0:
                self.position = 1
                self.entry_price = price
        elif action == 2:
            if self.position == 1:
                reward += (price - self.entry_price) * POINT_VALUE_PROXY
                self.position = 0
            if self.position == 0:
                self.position = -1
                self.entry_price = price

        reward += STEP_PENALTY

        self.current_step += 1
        if self.current_step >= len(self.df) - 1:
            self.done = True
            if self.position == 1:
                reward += (price - self.entry_price) * POINT_VALUE_PROXY
            elif self.position == -1:
                reward += (self.entry_price - price) * POINT_VALUE_PROXY

        return self.get_state(), reward / REWARD_SCALE, self.done


def load_custom_env_class(code: str) -> type:
    """
    Execute environment code and return its environment class: CustomTradingEnv
    if defined, else the last user class exposing reset/step/get_state.
    """
    loaded = load_user_code(code, filename="<custom_env>")
    candidate = loaded.namespace.get(CUSTOM_ENV_NAME)
    if isinstance(candidate, type):
        return candidate
    envs = [c for c in user_classes(loaded) if all(hasattr(c, m) for m in ENV_METHODS)]
    if not envs:
        raise EnvironmentLoadError(f"no {CUSTOM_ENV_NAME} (or class with {', '.join(ENV_METHODS)}) defined")
    return envs[-1]


def build_environment(candles: List[dict], custom_env_code: Optional[str] = None):
    """Custom environment when supplied and loadable, else TradingEnv. Load failures only log."""
    if custom_env_code and custom_env_code.strip():
        try:
            env_cls = load_custom_env_class(custom_env_code)
            env = env_cls(candles)
            if not isinstance(env, Environment):
                raise EnvironmentLoadError(f"{env_cls.__name__} does not implement {', '.join(ENV_METHODS)}")
            logger.info("Using custom environment %s", env_cls.__name__)
            return env
        except (Exception, SystemExit) as e:
            logger.warning("Custom environment failed to load, using default: %s", e.args[0] if e.args else e)
    return TradingEnv(candles)
