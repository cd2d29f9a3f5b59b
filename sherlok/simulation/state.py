from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from sherlok.data.pipeline import MinMaxScale
from sherlok.simulation.event_log import EventLog
from sherlok.simulation.models import GenerationRecord, Player


def new_population(size: int) -> list[Player]:
    return [Player(id=i + 1) for i in range(size)]


@dataclass
class SimulationState:
    """All mutable simulation data; owned and mutated by SimulationEngine only."""

    players: list[Player]
    board: list[int] = field(default_factory=list)
    generation: int = 1
    round_progress: int = 0
    history: list[GenerationRecord] = field(default_factory=list)
    log: EventLog = field(default_factory=EventLog)
    # loaded draw data: normalised rows with derived features, plus their scale
    dataset: np.ndarray | None = None
    data_scale: MinMaxScale | None = None

    @classmethod
    def initial(cls, population_size: int) -> SimulationState:
        return cls(players=new_population(population_size))

    @property
    def data_loaded(self) -> bool:
        return self.dataset is not None and len(self.dataset) > 0

    def restart(self, population_size: int) -> None:
        """Back to generation 1 with a fresh population; loaded data is kept."""
        self.players = new_population(population_size)
        self.board = []
        self.generation = 1
        self.round_progress = 0
        self.history = []
        self.log.clear()
