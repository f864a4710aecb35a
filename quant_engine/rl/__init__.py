"""Reinforcement learning: environments, NumPy DQN, trainer and policy export."""

from quant_engine.rl.config import RLConfig
from quant_engine.rl.network import QNetwork
from quant_engine.rl.replay_buffer import ReplayBuffer
from quant_engine.rl.agent import DQNAgent
from quant_engine.rl.environment import TradingEnv, build_environment
from quant_engine.rl.export import export_policy_code
from quant_engine.rl.trainer import DQNTrainer, train_agent

__all__ = [
    "RLConfig",
    "QNetwork",
    "ReplayBuffer",
    "DQNAgent",
    "TradingEnv",
    "build_environment",
    "export_policy_code",
    "DQNTrainer",
    "train_agent",
]
