import numpy as np
import pytest

pytest.importorskip("tensorflow")

from sherlok.data.pipeline import MinMaxScale  # noqa: E402
from sherlok.exceptions import ModelLoadError  # noqa: E402
from sherlok.model import ModelAdapter  # noqa: E402
from sherlok.model.keras_model import KerasModel  # noqa: E402
from tests.conftest import save_keras_pair  # noqa: E402


class TestKerasModel:
    def test_file_pair_round_trip(self, tmp_path):
        network, descriptor, weights = save_keras_pair(tmp_path, input_dim=8, output_dim=5)

        loaded = KerasModel.load(descriptor, weights)

        batch = np.linspace(0, 1, 16).reshape(2, 8)
        np.testing.assert_allclose(
            loaded.predict(batch), network.predict(batch, verbose=0), rtol=1e-5
        )
        assert (loaded.input_dim, loaded.output_dim) == (8, 5)
        assert loaded.trained is True

    def test_missing_descriptor(self, tmp_path):
        with pytest.raises(ModelLoadError, match="descriptor"):
            KerasModel.load(tmp_path / "nope.json", tmp_path / "nope.weights.h5")

    def test_invalid_descriptor(self, tmp_path):
        _, descriptor, weights = save_keras_pair(tmp_path, input_dim=4, output_dim=2)
        descriptor.write_text("not a model", encoding="utf-8")
        with pytest.raises(ModelLoadError, match="Invalid model descriptor"):
            KerasModel.load(descriptor, weights)

    def test_missing_weights(self, tmp_path):
        _, descriptor, weights = save_keras_pair(tmp_path, input_dim=4, output_dim=2)
        weights.unlink()
        with pytest.raises(ModelLoadError, match="Weights file not found"):
            KerasModel.load(descriptor, weights)

    def test_weights_for_another_architecture(self, tmp_path):
        other = tmp_path / "other"
        other.mkdir()
        _, descriptor, _ = save_keras_pair(tmp_path, input_dim=4, output_dim=2)
        _, _, foreign_weights = save_keras_pair(other, input_dim=6, output_dim=3)
        with pytest.raises(ModelLoadError, match="Cannot load weights"):
            KerasModel.load(descriptor, foreign_weights)

    def test_rejects_sequence_input(self):
        keras = pytest.importorskip("tensorflow").keras
        network = keras.Sequential([keras.Input(shape=(4, 3)), keras.layers.Dense(2)])
        with pytest.raises(ModelLoadError, match="input_shape"):
            KerasModel(network)


def test_adapter_loads_keras_pair(tmp_path):
    save_keras_pair(tmp_path, input_dim=6, output_dim=3)
    adapter = ModelAdapter()

    adapter.load(tmp_path / "model.json", tmp_path / "model.weights.h5")

    assert adapter.is_available
    assert not adapter.is_placeholder
    prediction = adapter.predict(np.zeros(6), MinMaxScale.from_bounds(1, 25, width=3))
    assert prediction.shape == (3,)
    assert np.all((prediction >= 1) & (prediction <= 25))
    assert adapter.live_buffers == 0
