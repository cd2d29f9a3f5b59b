"""Draw data pipeline: CSV parsing, min-max scaling and derived features.

Records are rows of a 2-D ``float64`` array. Scaling parameters are derived
from the batch handed to :func:`normalize`; two batches normalised separately
do not share a scale and their values are not comparable.
"""

from __future__ import annotations

from dataclasses import dataclass
import io

from loguru import logger
import numpy as np
import pandas as pd

from sherlok.exceptions import FormatError

__all__ = [
    "DERIVED_FEATURES",
    "MinMaxScale",
    "NormalizedBatch",
    "add_derived_features",
    "denormalize",
    "normalize",
    "parse",
    "strip_derived_features",
]

DERIVED_FEATURES: tuple[str, ...] = ("mean", "std", "spread")


@dataclass(frozen=True)
class MinMaxScale:
    """Per-column min-max parameters mapping raw values into ``[0, 1]``."""

    mins: np.ndarray
    maxs: np.ndarray

    @classmethod
    def fit(cls, records: np.ndarray) -> MinMaxScale:
        values = _as_matrix(records)
        if values.shape[0] == 0:
            raise FormatError("Cannot derive a scale from an empty batch")
        return cls(mins=values.min(axis=0), maxs=values.max(axis=0))

    @classmethod
    def from_bounds(cls, low: float, high: float, width: int) -> MinMaxScale:
        """Same fixed bounds for every column (used for synthesised boards)."""
        return cls(
            mins=np.full(width, float(low)),
            maxs=np.full(width, float(high)),
        )

    @property
    def width(self) -> int:
        return int(self.mins.shape[0])

    @property
    def span(self) -> np.ndarray:
        return self.maxs - self.mins

    def transform(self, records: np.ndarray) -> np.ndarray:
        values = self._check_width(_as_matrix(records))
        span = self.span
        # constant columns collapse to 0.0; inverse maps them back to the min
        safe = np.where(span == 0, 1.0, span)
        return np.where(span == 0, 0.0, (values - self.mins) / safe)

    def inverse_transform(self, values: np.ndarray) -> np.ndarray:
        values = self._check_width(_as_matrix(values))
        return values * self.span + self.mins

    def _check_width(self, values: np.ndarray) -> np.ndarray:
        if values.shape[1] != self.width:
            raise FormatError(
                f"Expected {self.width} columns for this scale, got {values.shape[1]}"
            )
        return values


@dataclass(frozen=True)
class NormalizedBatch:
    values: np.ndarray
    scale: MinMaxScale

    def __len__(self) -> int:
        return int(self.values.shape[0])


def parse(raw_text: str) -> np.ndarray:
    """Parse header + numeric rows into a read-only ``(rows, columns)`` array.

    Raises:
        FormatError: empty input, a row whose cell count differs from the
            header, or a cell that is not numeric.
    """
    if not raw_text or not raw_text.strip():
        raise FormatError("No data: expected a header row")

    # header=None: the header row fixes the expected width, longer rows raise
    try:
        table = pd.read_csv(
            io.StringIO(raw_text),
            header=None,
            dtype=str,
            skip_blank_lines=True,
            keep_default_na=False,
        )
    except pd.errors.EmptyDataError as exc:
        raise FormatError("No data: expected a header row") from exc
    except pd.errors.ParserError as exc:
        raise FormatError(f"Inconsistent column count: {exc}") from exc

    header = [str(name).strip() for name in table.iloc[0].tolist()]
    frame = table.iloc[1:].reset_index(drop=True)
    n_columns = len(header)

    # short rows are padded with NaN; empty cells stay "" (keep_default_na)
    short = frame.isna().any(axis=1)
    if short.any():
        row = int(short.to_numpy().argmax()) + 2
        raise FormatError(f"Row {row} has fewer than {n_columns} columns")

    if frame.empty:
        logger.debug("[DataPipeline] Header-only input, 0 records")
        return _readonly(np.empty((0, n_columns)))

    numeric = frame.apply(lambda col: pd.to_numeric(col.str.strip(), errors="coerce"))
    values = numeric.to_numpy(dtype=np.float64)
    # NaN covers unparseable cells; inf and overflowing literals are rejected too
    bad = ~np.isfinite(values)
    if bad.any():
        row_idx, col_idx = np.argwhere(bad)[0]
        raise FormatError(
            f"Row {int(row_idx) + 2}, column {header[col_idx]!r}: "
            f"non-numeric value {frame.iat[row_idx, col_idx]!r}"
        )

    records = _readonly(values.reshape(-1, n_columns))
    logger.debug("[DataPipeline] Parsed {} record(s) x {} column(s)", *records.shape)
    return records


def normalize(records: np.ndarray) -> NormalizedBatch:
    """Min-max scale ``records`` using parameters fitted on this batch only."""
    scale = MinMaxScale.fit(records)
    return NormalizedBatch(values=scale.transform(records), scale=scale)


def denormalize(values: np.ndarray, scale: MinMaxScale) -> np.ndarray:
    """Inverse of :func:`normalize`; exact for values it produced."""
    return scale.inverse_transform(values)


def add_derived_features(values: np.ndarray) -> np.ndarray:
    """Append one column per :data:`DERIVED_FEATURES` entry to every row."""
    matrix = _as_matrix(values)
    if matrix.shape[1] == 0:
        raise FormatError("Cannot derive features from zero-width records")
    if matrix.shape[0] == 0:
        return np.empty((0, matrix.shape[1] + len(DERIVED_FEATURES)))
    derived = np.column_stack(
        [
            matrix.mean(axis=1),
            matrix.std(axis=1),
            matrix.max(axis=1) - matrix.min(axis=1),
        ]
    )
    return np.hstack([matrix, derived])


def strip_derived_features(features: np.ndarray) -> np.ndarray:
    matrix = _as_matrix(features)
    return matrix[:, : matrix.shape[1] - len(DERIVED_FEATURES)]


def _as_matrix(records: np.ndarray) -> np.ndarray:
    matrix = np.asarray(records, dtype=np.float64)
    if matrix.ndim == 1:
        matrix = matrix.reshape(1, -1)
    if matrix.ndim != 2:
        raise FormatError(f"Expected 2-D records, got {matrix.ndim}-D")
    return matrix


def _readonly(records: np.ndarray) -> np.ndarray:
    records.flags.writeable = False
    return records
