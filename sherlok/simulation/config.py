from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SimulationConfig(BaseModel):
    """Configuration options controlling SimulationEngine behaviour."""

    population_size: int = Field(default=10, gt=0, description="Number of players")
    rounds_per_generation: int = Field(
        default=100, gt=0, description="Rounds played before each elitist evolution step"
    )
    tick_interval: float = Field(
        default=0.1, gt=0, description="Seconds to wait between rounds while playing"
    )
    board_size: int = Field(
        default=15, gt=0, description="Numbers per synthesised board (no data loaded)"
    )
    number_low: int = Field(default=1, description="Smallest synthesised board number")
    number_high: int = Field(default=25, description="Largest synthesised board number")
    max_generations: int | None = Field(
        default=None,
        gt=0,
        description="Pause after this many completed generations (None = unlimited)",
    )
    inference_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Seconds before an inference is abandoned and the round skipped",
    )
    max_consecutive_errors: int = Field(
        default=10, gt=0, description="Unexpected round failures tolerated in a row"
    )
    seed: int | None = Field(default=None, description="Seed for board draws and placeholder model")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_number_range(self) -> "SimulationConfig":
        if self.number_high < self.number_low:
            raise ValueError(
                f"number_high ({self.number_high}) must be >= number_low ({self.number_low})"
            )
        return self
