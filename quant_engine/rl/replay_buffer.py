"""Fixed-capacity experience replay, oldest transitions overwritten first."""

from __future__ import annotations
import random
from typing import List, Optional

from quant_engine.core.types import Transition


class ReplayBuffer:
    def __init__(self, capacity: int = 5000, rng: Optional[random.Random] = None):
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._buffer: List[Transition] = []
        self._position = 0
        self._rng = rng if rng is not None else random.Random()

    def push(self, state, action: int, reward: float, next_state, done: bool) -> None:
        item = Transition(list(state), int(action), float(reward), list(next_state), bool(done))
        if len(self._buffer) < self.capacity:
            self._buffer.append(item)
        else:
            self._buffer[self._position] = item
        self._position = (self._position + 1) % self.capacity

    def sample(self, batch_size: int) -> List[Transition]:
        """Uniform sample without replacement."""
        return self._rng.sample(self._buffer, batch_size)

    def __len__(self) -> int:
        return len(self._buffer)
