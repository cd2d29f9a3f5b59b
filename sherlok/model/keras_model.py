from __future__ import annotations

from pathlib import Path

from loguru import logger
import numpy as np
from tensorflow import keras

from sherlok.exceptions import ModelLoadError

__all__ = ["KerasModel"]


class KerasModel:
    """A trained Keras network behind the ``InferenceModel`` interface.

    The artifact is the usual file pair: the architecture from
    ``model.to_json()`` and the weights from ``model.save_weights()``
    (``.weights.h5``). Dimensions come from the network's own input and
    output shapes, so only single-input, single-output dense heads fit.
    """

    trained = True

    def __init__(self, model: keras.Model):
        self._model = model
        self.input_dim = self._last_dim(model, "input_shape")
        self.output_dim = self._last_dim(model, "output_shape")

    @property
    def model(self) -> keras.Model:
        return self._model

    @staticmethod
    def _last_dim(model: keras.Model, attr: str) -> int:
        try:
            shape = getattr(model, attr)
        except (AttributeError, ValueError) as exc:
            raise ModelLoadError(f"Model has no defined {attr}: {exc}") from exc
        if not isinstance(shape, tuple) or len(shape) != 2 or shape[-1] is None:
            raise ModelLoadError(f"Expected a (batch, features) {attr}, got {shape}")
        return int(shape[-1])

    def predict(self, batch: np.ndarray) -> np.ndarray:
        return np.asarray(self._model.predict(batch, verbose=0), dtype=np.float64)

    @classmethod
    def load(cls, descriptor_path: str | Path, weights_path: str | Path) -> KerasModel:
        descriptor_path, weights_path = Path(descriptor_path), Path(weights_path)
        try:
            descriptor = descriptor_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ModelLoadError(f"Cannot read descriptor {descriptor_path}: {exc}") from exc

        try:
            network = keras.models.model_from_json(descriptor)
        except Exception as exc:
            raise ModelLoadError(f"Invalid model descriptor {descriptor_path}: {exc}") from exc

        if not weights_path.is_file():
            raise ModelLoadError(f"Weights file not found: {weights_path}")
        try:
            network.load_weights(str(weights_path))
        except Exception as exc:
            raise ModelLoadError(f"Cannot load weights {weights_path}: {exc}") from exc

        model = cls(network)
        logger.info(
            "[KerasModel] Loaded {} | input_dim={}, output_dim={}",
            descriptor_path.name,
            model.input_dim,
            model.output_dim,
        )
        return model

    def save(self, descriptor_path: str | Path, weights_path: str | Path) -> None:
        Path(descriptor_path).write_text(self._model.to_json(), encoding="utf-8")
        self._model.save_weights(str(weights_path))
