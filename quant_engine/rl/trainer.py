"""
DQN trainer: runs episodes of the agent against an environment built from a
candle series, reports progress every few episodes, and exports the policy.
"""

from __future__ import annotations
import logging
from typing import Callable, Iterable, List, Optional, Union

from quant_engine.core.errors import StrategyRuntimeError
from quant_engine.core.sanitize import safe_float
from quant_engine.core.types import Candle, TrainingResult, TrainingStep
from quant_engine.rl.agent import DQNAgent, HOLD, N_ACTIONS
from quant_engine.rl.config import RLConfig
from quant_engine.rl.environment import REWARD_SCALE, build_environment
from quant_engine.rl.export import export_policy_code

logger = logging.getLogger("quant_engine.rl.trainer")

REPORT_EVERY = 5
STEP_CAP_MARGIN = 100

ProgressCallback = Callable[[dict], None]


def _finite(state) -> List[float]:
    """Environment output with NaN/inf coerced to 0 before it reaches the network."""
    return [safe_float(x) for x in state]


class DQNTrainer:
    """
    One trainer per task: owns its environment, agent, network and replay buffer.
    on_progress receives {episode, totalReward, epsilon, winRate, progress}.
    """

    def __init__(
        self,
        candles: Iterable[Union[Candle, dict]],
        config: Optional[RLConfig] = None,
        custom_env_code: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.raw = [c.to_dict() if isinstance(c, Candle) else dict(c) for c in candles]
        self.config = config or RLConfig()
        self.custom_env_code = custom_env_code
        self.on_progress = on_progress
        self.env = build_environment(self.raw, custom_env_code)
        self.agent: Optional[DQNAgent] = None

    def _build_agent(self, state_dim: int) -> DQNAgent:
        cfg = self.config
        return DQNAgent(
            state_dim=state_dim,
            action_dim=N_ACTIONS,
            hidden_dim=cfg.hidden_layer_size,
            lr=cfg.learning_rate,
            gamma=cfg.discount_factor,
            epsilon=cfg.epsilon_start,
            epsilon_decay=cfg.epsilon_decay,
            epsilon_min=cfg.epsilon_min,
            batch_size=cfg.batch_size,
            buffer_capacity=cfg.buffer_capacity,
            seed=cfg.seed,
        )

    def train(self) -> TrainingResult:
        try:
            return self._train()
        except StrategyRuntimeError:
            raise
        except (Exception, SystemExit):
            raise StrategyRuntimeError.from_current("training failed")

    def _train(self) -> TrainingResult:
        env = self.env
        state_dim = len(_finite(env.reset()))
        agent = self.agent = self._build_agent(state_dim)
        episodes = self.config.episodes
        step_limit = len(self.raw) + STEP_CAP_MARGIN
        history: List[TrainingStep] = []
        logger.info("Training DQN: %d episodes, state_dim=%d, %d candles", episodes, state_dim, len(self.raw))

        for e in range(episodes):
            state = _finite(env.reset())
            total_reward = 0.0
            wins = 0
            trades = 0
            steps = 0
            while True:
                action = agent.act(state)
                next_state, reward, done = env.step(action)
                next_state = _finite(next_state)
                reward = safe_float(reward)
                agent.remember(state, action, reward, next_state, done)
                agent.replay()
                state = next_state
                total_reward += reward
                if reward > 0:
                    wins += 1
                if action != HOLD:
                    trades += 1
                steps += 1
                if done or steps > step_limit:
                    break

            agent.decay_epsilon()

            if e % REPORT_EVERY == 0 or e == episodes - 1:
                record = TrainingStep(
                    episode=e + 1,
                    total_reward=safe_float(total_reward * REWARD_SCALE),
                    epsilon=safe_float(agent.epsilon),
                    win_rate=safe_float(wins / trades if trades > 0 else 0.0),
                )
                history.append(record)
                logger.debug("Episode %d: reward=%.2f eps=%.3f win=%.2f",
                             record.episode, record.total_reward, record.epsilon, record.win_rate)
                if self.on_progress is not None:
                    payload = record.to_dict()
                    payload["progress"] = float((e + 1) / episodes * 100)
                    self.on_progress(payload)

        weights = agent.model.get_weights()
        return TrainingResult(
            history=history,
            exported_policy_code=export_policy_code(weights, self.custom_env_code),
            weights=weights,
        )


def train_agent(
    candles: Iterable[Union[Candle, dict]],
    config: Optional[RLConfig] = None,
    custom_env_code: Optional[str] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> TrainingResult:
    return DQNTrainer(candles, config, custom_env_code, on_progress).train()
