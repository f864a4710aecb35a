"""
Policy export: render trained weights as standalone strategy source the sandbox can run.

The exported class re-implements the network's forward pass and trades on
argmax Q. It cannot carry the training environment's feature code, so
get_state() is a placeholder the user must fill in (or that the custom env
source, prepended above it, can be adapted into).
"""

from __future__ import annotations
from typing import Optional

from quant_engine.core.sanitize import sanitize
from quant_engine.core.types import NetworkWeights

POLICY_CLASS_NAME = "RLStrategy"
MIN_HISTORY = 50


def export_policy_code(weights: NetworkWeights, custom_env_code: Optional[str] = None) -> str:
    w = sanitize(weights.to_lists())
    state_dim = len(w["W1"])
    lines = [
        "import numpy as np",
        "",
        "",
        f"class {POLICY_CLASS_NAME}:",
        "    def __init__(self):",
        "        self.position = 0",
        "        # Pre-trained weights (DQN)",
        f"        self.W1 = np.array({w['W1']})",
        f"        self.b1 = np.array({w['b1']})",
        f"        self.W2 = np.array({w['W2']})",
        f"        self.b2 = np.array({w['b2']})",
        "",
        "    def forward(self, x):",
        "        z1 = np.dot(x, self.W1) + self.b1",
        "        a1 = np.maximum(0, z1)",
        "        return np.dot(a1, self.W2) + self.b2",
        "",
        "    def on_tick(self, candles):",
        f"        if len(candles) < {MIN_HISTORY}:",
        "            return",
        "        state = self.get_state(candles)",
        "        q_values = self.forward(np.array([state], dtype=float))[0]",
        "        action = int(np.argmax(q_values))",
        "        if action == 1:",
        "            if self.position <= 0:",
        "                self.order('BUY', 1, 'DQN-Buy')",
        "            self.position = 1",
        "        elif action == 2:",
        "            if self.position >= 0:",
        "                self.order('SELL', 1, 'DQN-Sell')",
        "            self.position = -1",
        "",
        "    def get_state(self, candles):",
        "        # Replace with the feature logic used in training.",
        "        # Must return a flat list of normalized floats.",
        f"        return [0.0] * {state_dim}",
        "",
    ]
    policy = "\n".join(lines)
    if custom_env_code and custom_env_code.strip():
        return "\n".join([
            "# --- custom state logic used during training ---",
            custom_env_code.rstrip(),
            "# -----------------------------------------------",
            "",
            policy,
        ])
    return policy
