from __future__ import annotations

import threading
import time

import numpy as np
import pytest

from sherlok.data.pipeline import DERIVED_FEATURES
from sherlok.utils.trackers.base import LogWriter


class ConstantModel:
    """Returns the same normalised output row for every input."""

    def __init__(self, output: list[float], input_dim: int | None = None):
        self.output = np.asarray(output, dtype=np.float64)
        self.output_dim = len(output)
        self.input_dim = input_dim or self.output_dim + len(DERIVED_FEATURES)
        self.seen: list[np.ndarray] = []

    def predict(self, batch: np.ndarray) -> np.ndarray:
        self.seen.append(np.array(batch))
        return np.tile(self.output, (len(batch), 1))


class FailingModel:
    input_dim = 18
    output_dim = 15

    def predict(self, batch: np.ndarray) -> np.ndarray:
        raise RuntimeError("backend exploded")


class SlowModel(ConstantModel):
    """Sleeps inside predict and records how many calls overlapped."""

    def __init__(self, output: list[float], delay: float):
        super().__init__(output)
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def predict(self, batch: np.ndarray) -> np.ndarray:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            return super().predict(batch)
        finally:
            with self._lock:
                self.active -= 1


class RecordingWriter(LogWriter):
    def __init__(self):
        self.scalars: list[tuple[str, float, int | None]] = []
        self.texts: list[tuple[str, str, int | None]] = []

    def scalar(self, metric: str, value: float, *, step: int | None = None) -> None:
        self.scalars.append((metric, value, step))

    def text(self, tag: str, text: str, *, step: int | None = None) -> None:
        self.texts.append((tag, text, step))

    def close(self) -> None:
        pass


# one repeated draw: every board is exactly 1..12
SINGLE_DRAW_CSV = "\n".join(
    [
        ",".join(f"n{i}" for i in range(1, 13)),
        ",".join(str(i) for i in range(1, 13)),
        ",".join(str(i) for i in range(1, 13)),
    ]
)

DRAWS_CSV = """b1,b2,b3,b4,b5
1,7,13,19,25
2,8,14,20,24
5,6,9,22,23
3,11,12,17,21
"""


@pytest.fixture
def draws_csv() -> str:
    return DRAWS_CSV


@pytest.fixture
def single_draw_csv() -> str:
    return SINGLE_DRAW_CSV


@pytest.fixture
def echo_model() -> ConstantModel:
    """All-zero output: with a constant-column scale this predicts the draw itself."""
    return ConstantModel([0.0] * 12)


def save_keras_pair(directory, input_dim: int, output_dim: int):
    """Build a small Keras dense net and write its json + .weights.h5 pair."""
    keras = pytest.importorskip("tensorflow").keras
    network = keras.Sequential(
        [
            keras.Input(shape=(input_dim,)),
            keras.layers.Dense(8, activation="relu"),
            keras.layers.Dense(output_dim, activation="sigmoid"),
        ]
    )
    descriptor, weights = directory / "model.json", directory / "model.weights.h5"
    descriptor.write_text(network.to_json(), encoding="utf-8")
    network.save_weights(str(weights))
    return network, descriptor, weights
