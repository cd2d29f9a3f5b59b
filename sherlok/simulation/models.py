from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Player(BaseModel):
    id: int = Field(ge=1, description="Stable identifier, 1..N")
    score: int = Field(default=0, ge=0, description="Accumulated reward this generation")
    predictions: list[int] = Field(
        default_factory=list, description="Rounded prediction from the latest round"
    )

    model_config = ConfigDict(validate_assignment=True)


class GenerationRecord(BaseModel):
    generation: int = Field(ge=1)
    score: int = Field(ge=0, description="Best score reached in the generation")

    model_config = ConfigDict(frozen=True)


class PlayerResult(BaseModel):
    player_id: int
    matches: int
    reward: int
    score: int

    model_config = ConfigDict(frozen=True)


class RoundReport(BaseModel):
    """Everything one round produced, handed to listeners."""

    generation: int
    round_progress: int
    board: list[int]
    prediction: list[int]
    results: list[PlayerResult]
    evolved: GenerationRecord | None = None

    model_config = ConfigDict(frozen=True)


class SimulationSnapshot(BaseModel):
    """Detached copy of the simulation state for display."""

    playing: bool
    generation: int
    round_progress: int
    rounds_per_generation: int
    board: list[int]
    players: list[Player]
    history: list[GenerationRecord]
    logs: list[str]
    data_loaded: bool
    model_available: bool
