from __future__ import annotations

from sherlok.simulation.config import SimulationConfig
from sherlok.simulation.engine import RoundListener, SimulationEngine
from sherlok.simulation.event_log import EventLog
from sherlok.simulation.evolution import evolve_generation
from sherlok.simulation.metrics import SimulationMetrics
from sherlok.simulation.models import (
    GenerationRecord,
    Player,
    PlayerResult,
    RoundReport,
    SimulationSnapshot,
)
from sherlok.simulation.reward import count_matches, reward
from sherlok.simulation.state import SimulationState
