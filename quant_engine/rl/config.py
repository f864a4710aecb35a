"""DQN training configuration."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional

# Wire (dashboard) key -> field name
_WIRE_KEYS = {
    "learningRate": "learning_rate",
    "discountFactor": "discount_factor",
    "epsilonDecay": "epsilon_decay",
    "batchSize": "batch_size",
    "hiddenLayerSize": "hidden_layer_size",
    "bufferCapacity": "buffer_capacity",
}


@dataclass(frozen=True)
class RLConfig:
    episodes: int = 100
    learning_rate: float = 0.001
    discount_factor: float = 0.95
    epsilon_decay: float = 0.99
    batch_size: int = 32
    hidden_layer_size: int = 24
    epsilon_start: float = 1.0
    epsilon_min: float = 0.01
    buffer_capacity: int = 5000
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "RLConfig":
        """Accepts camelCase wire keys or snake_case; unknown keys are ignored."""
        known = set(cls.__dataclass_fields__)
        kwargs: dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = _WIRE_KEYS.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value
        return cls(**kwargs)
