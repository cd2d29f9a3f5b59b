from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np

from sherlok.exceptions import ModelLoadError

__all__ = ["ACTIVATIONS", "DenseNetwork", "InferenceModel"]

ACTIVATIONS = {
    "linear": lambda x: x,
    "relu": lambda x: np.maximum(x, 0.0),
    "tanh": np.tanh,
    "sigmoid": lambda x: 1.0 / (1.0 + np.exp(-x)),
}


@runtime_checkable
class InferenceModel(Protocol):
    """Anything that maps a ``(batch, input_dim)`` array to ``(batch, output_dim)``."""

    input_dim: int
    output_dim: int

    def predict(self, batch: np.ndarray) -> np.ndarray: ...


class DenseNetwork:
    """Feed-forward network evaluated with numpy; backs the untrained placeholder."""

    def __init__(
        self,
        weights: list[np.ndarray],
        biases: list[np.ndarray],
        activations: list[str],
        *,
        trained: bool = True,
    ):
        if not (len(weights) == len(biases) == len(activations)) or not weights:
            raise ModelLoadError("weights, biases and activations must align and be non-empty")
        for i, (w, b) in enumerate(zip(weights, biases)):
            if w.ndim != 2 or b.shape != (w.shape[1],):
                raise ModelLoadError(f"Layer {i}: bias {b.shape} does not fit weight {w.shape}")
            if i and weights[i - 1].shape[1] != w.shape[0]:
                raise ModelLoadError(
                    f"Layer {i}: expects {w.shape[0]} inputs, previous layer gives {weights[i - 1].shape[1]}"
                )
        unknown = set(activations) - ACTIVATIONS.keys()
        if unknown:
            raise ModelLoadError(f"Unknown activation(s): {sorted(unknown)}")

        self.weights = weights
        self.biases = biases
        self.activations = activations
        self.trained = trained

    @property
    def input_dim(self) -> int:
        return int(self.weights[0].shape[0])

    @property
    def output_dim(self) -> int:
        return int(self.weights[-1].shape[1])

    def predict(self, batch: np.ndarray) -> np.ndarray:
        out = np.asarray(batch, dtype=np.float64)
        if out.ndim != 2 or out.shape[1] != self.input_dim:
            raise ValueError(f"Expected input of shape (n, {self.input_dim}), got {out.shape}")
        for w, b, act in zip(self.weights, self.biases, self.activations):
            out = ACTIVATIONS[act](out @ w + b)
        return out

    @classmethod
    def placeholder(
        cls,
        input_dim: int,
        output_dim: int,
        *,
        hidden: tuple[int, ...] = (64, 32),
        seed: int | None = None,
    ) -> DenseNetwork:
        """Untrained network with He-initialised weights and a sigmoid head."""
        rng = np.random.default_rng(seed)
        sizes = [input_dim, *hidden, output_dim]
        weights = [
            rng.normal(0.0, np.sqrt(2.0 / fan_in), size=(fan_in, fan_out))
            for fan_in, fan_out in zip(sizes[:-1], sizes[1:])
        ]
        biases = [np.zeros(fan_out) for fan_out in sizes[1:]]
        activations = ["relu"] * len(hidden) + ["sigmoid"]
        return cls(weights, biases, activations, trained=False)
