from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class TBConfig(BaseModel):
    logdir: Path
    prefix: str = Field(default="sherlok", description="Tag prefix for every series")
    summary_writer_kwargs: dict[str, Any] = Field(default_factory=dict)
