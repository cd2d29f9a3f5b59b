from abc import ABC, abstractmethod


class LogWriter(ABC):
    @abstractmethod
    def scalar(self, metric: str, value: float, *, step: int | None = None) -> None:
        pass

    @abstractmethod
    def text(self, tag: str, text: str, *, step: int | None = None) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class NullWriter(LogWriter):
    """Discards everything; used when no tracker is configured."""

    def scalar(self, metric: str, value: float, *, step: int | None = None) -> None:
        pass

    def text(self, tag: str, text: str, *, step: int | None = None) -> None:
        pass

    def close(self) -> None:
        pass
