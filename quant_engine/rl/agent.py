"""
DQN agent: epsilon-greedy policy over a QNetwork, trained from replayed transitions.

The same network produces both the prediction and the bootstrap target; there is
no separate target network.
"""

from __future__ import annotations
import random
from typing import Optional, Sequence

import numpy as np

from quant_engine.rl.network import QNetwork
from quant_engine.rl.replay_buffer import ReplayBuffer

HOLD, BUY, SELL = 0, 1, 2
N_ACTIONS = 3


class DQNAgent:
    def __init__(
        self,
        state_dim: int,
        action_dim: int = N_ACTIONS,
        hidden_dim: int = 24,
        lr: float = 0.001,
        gamma: float = 0.95,
        epsilon: float = 1.0,
        epsilon_decay: float = 0.995,
        epsilon_min: float = 0.01,
        batch_size: int = 32,
        buffer_capacity: int = 5000,
        seed: Optional[int] = None,
    ):
        self.state_dim = state_dim
        self.action_dim = action_dim
        self.gamma = gamma
        self.epsilon = epsilon
        self.epsilon_min = epsilon_min
        self.epsilon_decay = epsilon_decay
        self.batch_size = batch_size
        # Per-agent generators; agents in parallel workers never share RNG state.
        self.rng = random.Random(seed)
        self.np_rng = np.random.default_rng(seed)
        self.model = QNetwork(state_dim, hidden_dim, action_dim, lr, rng=self.np_rng)
        self.memory = ReplayBuffer(buffer_capacity, rng=self.rng)

    def act(self, state: Sequence[float]) -> int:
        """Random action with probability epsilon, else argmax Q."""
        if self.rng.random() <= self.epsilon:
            return self.rng.randrange(self.action_dim)
        q_values = self.model.forward(np.array([state], dtype=float))
        return int(np.argmax(q_values[0]))

    def remember(self, state, action: int, reward: float, next_state, done: bool) -> None:
        self.memory.push(state, action, reward, next_state, done)

    def replay(self) -> float:
        """One minibatch TD update. Returns MSE of the TD error; 0.0 and no update until the buffer holds a batch."""
        if len(self.memory) < self.batch_size:
            return 0.0

        batch = self.memory.sample(self.batch_size)
        states = np.array([t.state for t in batch], dtype=float)
        actions = np.array([t.action for t in batch], dtype=int)
        rewards = np.array([t.reward for t in batch], dtype=float)
        next_states = np.array([t.next_state for t in batch], dtype=float)
        dones = np.array([t.done for t in batch], dtype=bool)

        # Next-state pass first: forward() caches activations for backward(),
        # and the gradient must flow through the current-state pass.
        max_next_q = np.max(self.model.forward(next_states), axis=1)
        current_q = self.model.forward(states)

        targets = current_q.copy()
        idx = np.arange(len(batch))
        targets[idx, actions] = np.where(dones, rewards, rewards + self.gamma * max_next_q)

        d_loss = current_q - targets
        self.model.backward(d_loss)
        return float(np.mean(d_loss ** 2))

    def decay_epsilon(self) -> None:
        if self.epsilon > self.epsilon_min:
            self.epsilon = max(self.epsilon_min, self.epsilon * self.epsilon_decay)
