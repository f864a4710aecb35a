"""Unit tests for rl.trainer and rl.export."""

import numpy as np
import pytest
from quant_engine.core.errors import StrategyRuntimeError
from quant_engine.core.types import NetworkWeights
from quant_engine.rl.config import RLConfig
from quant_engine.rl.export import export_policy_code
from quant_engine.rl.trainer import DQNTrainer, train_agent
from quant_engine.sandbox.runner import run_strategy


def wave(n=60):
    closes = [100 + 5 * np.sin(i / 4) for i in range(n)]
    return [{"time": i, "open": c, "high": c + 1, "low": c - 1, "close": c, "volume": 1} for i, c in enumerate(closes)]


SMALL = RLConfig(episodes=6, batch_size=8, hidden_layer_size=8, seed=11)


def test_history_every_fifth_episode_and_last():
    result = train_agent(wave(), SMALL)
    assert [h.episode for h in result.history] == [1, 6]
    assert result.history[-1].epsilon < 1.0
    assert result.weights.W1.shape == (3, 8)


def test_progress_payload():
    seen = []
    train_agent(wave(), SMALL, on_progress=seen.append)
    assert [p["episode"] for p in seen] == [1, 6]
    assert set(seen[0]) == {"episode", "totalReward", "epsilon", "winRate", "progress"}
    assert seen[-1]["progress"] == pytest.approx(100.0)


def test_seeded_training_is_reproducible():
    a = train_agent(wave(), SMALL)
    b = train_agent(wave(), SMALL)
    assert [h.total_reward for h in a.history] == [h.total_reward for h in b.history]
    assert np.array_equal(a.weights.W2, b.weights.W2)


def test_wire_form():
    d = train_agent(wave(), SMALL).to_dict()
    assert set(d) == {"history", "exportedPolicyCode"}
    assert set(d["history"][0]) == {"episode", "totalReward", "epsilon", "winRate"}


def test_exported_policy_runs_in_sandbox():
    result = train_agent(wave(), SMALL)
    assert "class RLStrategy" in result.exported_policy_code
    run = run_strategy(result.exported_policy_code, wave(80))
    assert run.ok, run.error
    for sig in run.signals:
        assert sig.reason in ("DQN-Buy", "DQN-Sell")


def test_export_prepends_custom_env():
    w = NetworkWeights(W1=np.zeros((2, 2)), b1=np.zeros((1, 2)), W2=np.zeros((2, 3)), b2=np.zeros((1, 3)))
    code = export_policy_code(w, "class CustomTradingEnv:\n    pass\n")
    assert code.index("CustomTradingEnv") < code.index("class RLStrategy")
    assert "return [0.0] * 2" in code


def test_custom_env_runtime_error_surfaces():
    env_code = (
        "class CustomTradingEnv:\n"
        "    def __init__(self, candles):\n"
        "        pass\n"
        "    def reset(self):\n"
        "        return [0.0]\n"
        "    def get_state(self):\n"
        "        return [0.0]\n"
        "    def step(self, action):\n"
        "        raise RuntimeError('env exploded')\n"
    )
    with pytest.raises(StrategyRuntimeError) as exc:
        DQNTrainer(wave(), SMALL, env_code).train()
    assert "env exploded" in exc.value.trace


def test_config_from_wire_keys():
    cfg = RLConfig.from_dict({"episodes": 3, "learningRate": 0.01, "batchSize": 4, "unknown": 1})
    assert cfg.episodes == 3
    assert cfg.learning_rate == 0.01
    assert cfg.batch_size == 4


INF_REWARD_ENV = (
    "class CustomTradingEnv:\n"
    "    def __init__(self, candles):\n"
    "        self.i = 0\n"
    "    def reset(self):\n"
    "        self.i = 0\n"
    "        return self.get_state()\n"
    "    def get_state(self):\n"
    "        return [float(self.i), float('nan') if self.i == 2 else 1.0]\n"
    "    def step(self, action):\n"
    "        self.i += 1\n"
    "        reward = float('inf') if self.i == 3 else 0.5\n"
    "        return self.get_state(), reward, self.i >= 6\n"
)


def test_non_finite_env_output_is_coerced():
    cfg = RLConfig(episodes=2, batch_size=2, hidden_layer_size=4, seed=2)
    result = train_agent(wave(), cfg, INF_REWARD_ENV)
    w = result.weights
    for arr in (w.W1, w.b1, w.W2, w.b2):
        assert np.isfinite(arr).all()
    assert all(np.isfinite(h.total_reward) for h in result.history)
    run = run_strategy(result.exported_policy_code, wave(60))
    assert run.ok, run.error


def test_export_writes_finite_literals():
    w = NetworkWeights(W1=np.full((2, 2), np.nan), b1=np.zeros((1, 2)),
                       W2=np.zeros((2, 3)), b2=np.array([[np.inf, 0.0, -np.inf]]))
    code = export_policy_code(w)
    assert "nan" not in code
    assert "inf" not in code
    assert run_strategy(code, wave(60)).ok
