from sherlok.utils.trackers.base import LogWriter, NullWriter
from sherlok.utils.trackers.configs import TBConfig


def init_tb(cfg: TBConfig | None) -> LogWriter:
    """TensorBoard writer for ``cfg``; a NullWriter when tracking is disabled."""
    if cfg is None:
        return NullWriter()
    from sherlok.utils.trackers.tensorboard import TensorBoardWriter

    return TensorBoardWriter(cfg)


__all__ = ["LogWriter", "NullWriter", "TBConfig", "init_tb"]
