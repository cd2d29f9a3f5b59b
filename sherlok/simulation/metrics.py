from __future__ import annotations

from pydantic import BaseModel, Field


class SimulationMetrics(BaseModel):
    """Operational counters; not part of the simulation state and never reset."""

    rounds_played: int = Field(default=0, description="Rounds that scored the population")
    rounds_skipped: int = Field(
        default=0, description="Ticks skipped because no model was available"
    )
    inference_errors: int = Field(
        default=0, description="Rounds skipped because inference failed or timed out"
    )
    generations_completed: int = Field(default=0, description="Evolution steps performed")
    errors_encountered: int = Field(
        default=0, description="Unexpected failures caught by the tick loop"
    )

    def to_dict(self) -> dict[str, int]:
        return self.model_dump()
