from __future__ import annotations

from collections.abc import Iterator
import contextlib
from pathlib import Path

from loguru import logger
import numpy as np

from sherlok.data.pipeline import MinMaxScale, denormalize
from sherlok.exceptions import InferenceError, ModelUnavailableError
from sherlok.model.network import InferenceModel

__all__ = ["ModelAdapter"]


class ModelAdapter:
    """
    Single entry point to the opaque predictive model:
    - the adapter never trains, it only holds whatever model it was given;
    - every inference runs inside a scoped buffer that is released on all exit paths;
    - model failures surface as InferenceError, absence as ModelUnavailableError.
    """

    def __init__(self, model: InferenceModel | None = None) -> None:
        self._model: InferenceModel | None = None
        self._live_buffers = 0
        self.calls = 0
        if model is not None:
            self.set_model(model)

    @property
    def model(self) -> InferenceModel | None:
        return self._model

    @property
    def is_available(self) -> bool:
        return self._model is not None

    @property
    def is_placeholder(self) -> bool:
        """True for an untrained stand-in (models without the flag count as trained)."""
        return self._model is not None and not getattr(self._model, "trained", True)

    @property
    def live_buffers(self) -> int:
        """Inference buffers currently held; 0 whenever no call is in flight."""
        return self._live_buffers

    def set_model(self, model: InferenceModel) -> None:
        self._model = model
        logger.info(
            "[ModelAdapter] Model set | type={}, input_dim={}, output_dim={}, placeholder={}",
            type(model).__name__,
            model.input_dim,
            model.output_dim,
            self.is_placeholder,
        )

    def load(self, descriptor_path: str | Path, weights_path: str | Path) -> None:
        """Load a trained Keras file pair: ``to_json()`` architecture plus ``.weights.h5``."""
        # tensorflow is imported only once a trained model is actually requested
        from sherlok.model.keras_model import KerasModel

        self.set_model(KerasModel.load(descriptor_path, weights_path))

    def clear(self) -> None:
        self._model = None

    def predict(self, feature_vector: np.ndarray, scale: MinMaxScale) -> np.ndarray:
        """Run one inference and return the raw-scale prediction vector.

        ``feature_vector`` is one normalised record with derived features
        appended; ``scale`` maps the normalised output back to raw numbers
        and fixes the expected output arity.
        """
        model = self._model
        if model is None:
            raise ModelUnavailableError("No model loaded")

        self.calls += 1
        with self._inference_buffer(feature_vector) as batch:
            try:
                output = model.predict(batch)
            except Exception as exc:
                raise InferenceError(f"{type(model).__name__}.predict failed: {exc}") from exc
            row = self._first_row(output, scale.width)

        return denormalize(row, scale)[0]

    @contextlib.contextmanager
    def _inference_buffer(self, feature_vector: np.ndarray) -> Iterator[np.ndarray]:
        batch = np.asarray(feature_vector, dtype=np.float64).reshape(1, -1).copy()
        self._live_buffers += 1
        try:
            yield batch
        finally:
            self._live_buffers -= 1
            del batch

    @staticmethod
    def _first_row(output: object, width: int) -> np.ndarray:
        try:
            values = np.asarray(output, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InferenceError(f"Model output is not numeric: {exc}") from exc
        if values.ndim == 2:
            values = values[0]
        if values.ndim != 1 or values.shape[0] != width:
            raise InferenceError(
                f"Model output has shape {np.shape(output)}, expected {width} values"
            )
        if not np.all(np.isfinite(values)):
            raise InferenceError("Model output contains non-finite values")
        return values.copy()
