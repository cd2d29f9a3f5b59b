class SherlokError(Exception):
    """Base for all Sherlok exceptions."""

    pass


class FormatError(SherlokError):
    """Malformed draw data (bad header, ragged rows, non-numeric cells)."""

    pass


class ModelError(SherlokError):
    """Base for predictive model failures."""

    pass


# Model subtypes
class ModelUnavailableError(ModelError):
    """Raised when inference is requested before a model is set."""

    pass


class ModelLoadError(ModelError):
    """Raised when a descriptor/weights pair cannot be turned into a model."""

    pass


class InferenceError(ModelError):
    """Raised when the underlying prediction call fails or returns garbage."""

    pass


class SimulationError(SherlokError):
    """Simulation invariants violated (programming errors, not runtime ones)."""

    pass
