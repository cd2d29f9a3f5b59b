from __future__ import annotations

from sherlok.model.adapter import ModelAdapter
from sherlok.model.network import DenseNetwork, InferenceModel
