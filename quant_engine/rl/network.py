"""
Two-layer Q-network in NumPy: ReLU hidden layer, linear output (one Q-value per action).
"""

from __future__ import annotations
from typing import Optional

import numpy as np

from quant_engine.core.types import NetworkWeights


class QNetwork:
    """
    He-initialized weights, zero biases. backward() takes dLoss/dQ, clips the
    weight gradients to [-1, 1] and applies plain SGD averaged over the batch.
    """

    def __init__(
        self,
        input_dim: int,
        hidden_dim: int,
        output_dim: int = 3,
        learning_rate: float = 0.001,
        rng: Optional[np.random.Generator] = None,
    ):
        rng = rng if rng is not None else np.random.default_rng()
        self.W1 = rng.standard_normal((input_dim, hidden_dim)) * np.sqrt(2.0 / input_dim)
        self.b1 = np.zeros((1, hidden_dim))
        self.W2 = rng.standard_normal((hidden_dim, output_dim)) * np.sqrt(2.0 / hidden_dim)
        self.b2 = np.zeros((1, output_dim))
        self.lr = learning_rate
        self._cache: dict = {}

    @property
    def input_dim(self) -> int:
        return self.W1.shape[0]

    def forward(self, X: np.ndarray) -> np.ndarray:
        """X: (batch, input_dim) -> Q-values (batch, output_dim). Caches activations for backward()."""
        X = np.asarray(X, dtype=float)
        z1 = X @ self.W1 + self.b1
        a1 = np.maximum(0, z1)
        z2 = a1 @ self.W2 + self.b2
        self._cache = {"X": X, "z1": z1, "a1": a1}
        return z2

    def backward(self, d_out: np.ndarray) -> None:
        """d_out: gradient of the loss w.r.t. the last forward() output."""
        m = d_out.shape[0]
        X, z1, a1 = self._cache["X"], self._cache["z1"], self._cache["a1"]

        dW2 = a1.T @ d_out
        db2 = np.sum(d_out, axis=0, keepdims=True)
        da1 = d_out @ self.W2.T
        dz1 = da1 * (z1 > 0)
        dW1 = X.T @ dz1
        db1 = np.sum(dz1, axis=0, keepdims=True)

        np.clip(dW1, -1.0, 1.0, out=dW1)
        np.clip(dW2, -1.0, 1.0, out=dW2)

        self.W1 -= self.lr * (dW1 / m)
        self.b1 -= self.lr * (db1 / m)
        self.W2 -= self.lr * (dW2 / m)
        self.b2 -= self.lr * (db2 / m)

    def get_weights(self) -> NetworkWeights:
        return NetworkWeights(W1=self.W1.copy(), b1=self.b1.copy(), W2=self.W2.copy(), b2=self.b2.copy())

    def set_weights(self, weights: NetworkWeights) -> None:
        self.W1 = np.array(weights.W1, dtype=float)
        self.b1 = np.array(weights.b1, dtype=float).reshape(1, -1)
        self.W2 = np.array(weights.W2, dtype=float)
        self.b2 = np.array(weights.b2, dtype=float).reshape(1, -1)
