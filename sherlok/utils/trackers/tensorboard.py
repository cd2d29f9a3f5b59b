from __future__ import annotations

from pathlib import Path
import time

from loguru import logger
from tensorboardX import SummaryWriter

from sherlok.utils.trackers.base import LogWriter
from sherlok.utils.trackers.configs import TBConfig


def _sanitize(s: str) -> str:
    return "".join(ch if ch.isalnum() or ch in "-_.=," else "_" for ch in str(s))


class TensorBoardWriter(LogWriter):
    """Writes generation trends as TensorBoard scalars and text."""

    def __init__(self, cfg: TBConfig):
        self.cfg = cfg
        logdir = Path(cfg.logdir).resolve()
        logdir.mkdir(parents=True, exist_ok=True)
        self._writer: SummaryWriter | None = SummaryWriter(
            str(logdir), **cfg.summary_writer_kwargs
        )
        self._steps: dict[str, int] = {}
        logger.info("[TensorBoardWriter] Writing to {}", logdir)

    def scalar(self, metric: str, value: float, *, step: int | None = None) -> None:
        if self._writer is None:
            return
        tag = self._tag(metric)
        self._writer.add_scalar(
            tag, float(value), global_step=self._step(tag, step), walltime=time.time()
        )

    def text(self, tag: str, text: str, *, step: int | None = None) -> None:
        if self._writer is None:
            return
        full = self._tag(tag)
        self._writer.add_text(full, text, global_step=self._step(full, step), walltime=time.time())

    def close(self) -> None:
        if self._writer is None:
            return
        try:
            self._writer.flush()
        finally:
            self._writer.close()
            self._writer = None

    def _tag(self, metric: str) -> str:
        return "/".join(_sanitize(x) for x in (self.cfg.prefix, metric) if x)

    def _step(self, tag: str, step: int | None) -> int:
        # series without explicit steps count up from 0
        if step is None:
            step = self._steps.get(tag, -1) + 1
        self._steps[tag] = step
        return step
