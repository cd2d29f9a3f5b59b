from __future__ import annotations

import asyncio
from collections.abc import Callable
import contextlib
from pathlib import Path

from loguru import logger
import numpy as np

from sherlok.data.pipeline import (
    DERIVED_FEATURES,
    MinMaxScale,
    add_derived_features,
    denormalize,
    normalize,
    parse,
    strip_derived_features,
)
from sherlok.exceptions import (
    FormatError,
    InferenceError,
    ModelUnavailableError,
    SimulationError,
)
from sherlok.model.adapter import ModelAdapter
from sherlok.model.network import DenseNetwork, InferenceModel
from sherlok.simulation.config import SimulationConfig
from sherlok.simulation.evolution import evolve_generation
from sherlok.simulation.metrics import SimulationMetrics
from sherlok.simulation.models import (
    GenerationRecord,
    PlayerResult,
    RoundReport,
    SimulationSnapshot,
)
from sherlok.simulation.reward import count_matches, reward
from sherlok.simulation.state import SimulationState
from sherlok.utils.trackers.base import LogWriter, NullWriter

__all__ = ["RoundListener", "SimulationEngine"]

RoundListener = Callable[[RoundReport], None]


class SimulationEngine:
    """
    Generation state machine for the player population:
    - each round draws a board, asks the model once and scores every player
      against that single shared prediction;
    - every ``rounds_per_generation`` rounds the population evolves (elitism);
    - state changes only inside step(), reset() and load_data(); rounds never overlap.
    """

    def __init__(
        self,
        config: SimulationConfig | None = None,
        adapter: ModelAdapter | None = None,
        writer: LogWriter | None = None,
    ):
        self.config = config or SimulationConfig()
        self.adapter = adapter if adapter is not None else ModelAdapter()
        self.writer = writer or NullWriter()

        self.state = SimulationState.initial(self.config.population_size)
        self.metrics = SimulationMetrics()

        self._rng = np.random.default_rng(self.config.seed)
        self._domain_scale = MinMaxScale.from_bounds(
            self.config.number_low, self.config.number_high, self.config.board_size
        )
        self._round_lock = asyncio.Lock()
        self._wake = asyncio.Event()
        self._playing = False
        self._task: asyncio.Task | None = None
        # timed-out inference still running in its worker thread
        self._pending_inference: asyncio.Future | None = None
        self._consecutive_errors = 0
        self._listeners: list[RoundListener] = []

        logger.info(
            "[SimulationEngine] Init | population={}, rounds_per_generation={}, board_size={}",
            self.config.population_size,
            self.config.rounds_per_generation,
            self.config.board_size,
        )

    # ------------------------------------------------------------------ inputs

    def load_data(self, raw_text: str) -> int:
        """Parse, normalise and feature-expand draw data, replacing any loaded set.

        Raises FormatError without touching the simulation state.
        """
        records = parse(raw_text)
        if len(records) == 0:
            raise FormatError("No draw records after the header")
        batch = normalize(records)
        features = add_derived_features(batch.values)

        self.state.dataset = features
        self.state.data_scale = batch.scale
        self.state.log.append(f"CSV loaded and processed: {len(records)} records")
        logger.info(
            "[SimulationEngine] Data loaded | records={}, columns={}",
            len(records),
            batch.scale.width,
        )

        if self.adapter.is_placeholder and self.adapter.model.output_dim != batch.scale.width:
            self.use_placeholder_model()
        return len(records)

    def load_csv(self, path: str | Path) -> int:
        return self.load_data(Path(path).read_text(encoding="utf-8"))

    def load_model(self, descriptor_path: str | Path, weights_path: str | Path) -> None:
        self.adapter.load(descriptor_path, weights_path)
        self.state.log.append("Trained model loaded")

    def set_model(self, model: InferenceModel) -> None:
        self.adapter.set_model(model)
        self.state.log.append("Trained model loaded")

    def use_placeholder_model(self) -> None:
        """Untrained stand-in sized for the current board width."""
        width = self._board_width()
        self.adapter.set_model(
            DenseNetwork.placeholder(
                input_dim=width + len(DERIVED_FEATURES),
                output_dim=width,
                seed=self.config.seed,
            )
        )

    def add_listener(self, listener: RoundListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: RoundListener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    # ---------------------------------------------------------- control surface

    def play(self) -> None:
        """Start (or keep) ticking; a no-op when already playing."""
        if self._playing:
            return
        self._playing = True
        self._wake.clear()
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(
                self.run(), name="simulation-loop"
            )
        logger.info("[SimulationEngine] Play")

    def pause(self) -> None:
        """Stop scheduling rounds; a round already in flight still completes."""
        if not self._playing:
            return
        self._playing = False
        self._wake.set()
        logger.info("[SimulationEngine] Pause")

    async def reset(self) -> None:
        """Pause, let any in-flight round finish, then start over from generation 1."""
        self.pause()
        async with self._round_lock:
            await self._drain_pending_inference()
            self.state.restart(self.config.population_size)
        logger.info("[SimulationEngine] Reset")

    async def shutdown(self) -> None:
        self.pause()
        if self._task:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        async with self._round_lock:
            await self._drain_pending_inference()

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def task(self) -> asyncio.Task | None:
        return self._task

    # -------------------------------------------------------------------- loop

    async def run(self) -> None:
        logger.info("[SimulationEngine] Loop start")
        self._consecutive_errors = 0
        try:
            while self._playing:
                try:
                    await self._tick_round()
                    self._consecutive_errors = 0
                except Exception as exc:  # pylint: disable=broad-except
                    self._on_error(str(exc))
                    if self._consecutive_errors >= self.config.max_consecutive_errors:
                        logger.critical(
                            "[SimulationEngine] Stop: {} consecutive errors",
                            self._consecutive_errors,
                        )
                        break

                if self._reached_generation_cap():
                    logger.info(
                        "[SimulationEngine] Stop: max_generations={}",
                        self.config.max_generations,
                    )
                    break

                await self._next_tick()
        finally:
            self._playing = False
            logger.info("[SimulationEngine] Loop stopped")

    async def step(self) -> RoundReport | None:
        """Play one round. Returns None when the round was skipped."""
        async with self._round_lock:
            return await self._play_round()

    async def _tick_round(self) -> RoundReport | None:
        async with self._round_lock:
            # pause() may have landed while the lock was held by step() or reset()
            if not self._playing:
                return None
            return await self._play_round()

    async def _play_round(self) -> RoundReport | None:
        await self._drain_pending_inference()
        if not self.adapter.is_available:
            self.metrics.rounds_skipped += 1
            logger.debug("[SimulationEngine] Skip round: no model")
            return None

        board, scale = self._draw_board()
        features = add_derived_features(scale.transform(np.asarray(board, dtype=np.float64)))[0]

        try:
            raw_prediction = await self._infer(features, scale)
        except ModelUnavailableError:
            self.metrics.rounds_skipped += 1
            return None
        except InferenceError as exc:
            self.metrics.inference_errors += 1
            self.state.log.append(f"Round skipped: {exc}")
            logger.warning("[SimulationEngine] Round skipped: {}", exc)
            return None

        return self._score_round(board, _round_half_up(raw_prediction))

    def _draw_board(self) -> tuple[list[int], MinMaxScale]:
        state = self.state
        if state.data_loaded:
            row = state.dataset[self._rng.integers(len(state.dataset))]
            raw = denormalize(strip_derived_features(row), state.data_scale)[0]
            return _round_half_up(raw), state.data_scale

        cfg = self.config
        drawn = self._rng.integers(cfg.number_low, cfg.number_high + 1, size=cfg.board_size)
        return [int(n) for n in drawn], self._domain_scale

    async def _infer(self, features: np.ndarray, scale: MinMaxScale) -> np.ndarray:
        call = asyncio.ensure_future(asyncio.to_thread(self.adapter.predict, features, scale))
        timeout = self.config.inference_timeout
        if timeout is None:
            return await call
        try:
            return await asyncio.wait_for(asyncio.shield(call), timeout=timeout)
        except asyncio.TimeoutError as exc:
            self._pending_inference = call
            raise InferenceError(f"Inference timed out after {timeout}s") from exc

    async def _drain_pending_inference(self) -> None:
        """Wait for an abandoned inference so the model is never entered twice at once."""
        pending, self._pending_inference = self._pending_inference, None
        if pending is None:
            return
        logger.debug("[SimulationEngine] Waiting for timed-out inference to finish")
        try:
            await pending
        except Exception as exc:  # pylint: disable=broad-except
            logger.debug("[SimulationEngine] Timed-out inference ended with: {}", exc)

    def _score_round(self, board: list[int], prediction: list[int]) -> RoundReport:
        state = self.state
        population = len(state.players)
        if population == 0:
            raise SimulationError("Population is empty")

        state.board = board
        # one prediction shared by every player
        matches = count_matches(prediction, board)
        gained = reward(matches, population)
        results: list[PlayerResult] = []
        for player in state.players:
            player.score += gained
            player.predictions = list(prediction)
            state.log.append(f"Player {player.id}: {matches} matches, reward {gained}")
            results.append(
                PlayerResult(
                    player_id=player.id, matches=matches, reward=gained, score=player.score
                )
            )
        self.metrics.rounds_played += 1

        generation, progress = state.generation, state.round_progress
        state.round_progress = (progress + 1) % self.config.rounds_per_generation
        evolved = self._evolve() if progress == self.config.rounds_per_generation - 1 else None

        report = RoundReport(
            generation=generation,
            round_progress=progress,
            board=list(board),
            prediction=list(prediction),
            results=results,
            evolved=evolved,
        )
        self._notify(report)
        return report

    def _evolve(self) -> GenerationRecord:
        state = self.state
        best = evolve_generation(state.players)
        record = GenerationRecord(generation=state.generation, score=best)
        state.history.append(record)
        state.generation += 1
        summary = f"Generation {record.generation} complete. Best score: {best}"
        state.log.append(summary)
        self.metrics.generations_completed += 1

        try:
            self.writer.scalar("best_score", best, step=record.generation)
            self.writer.text("generation_summary", summary, step=record.generation)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("[SimulationEngine] Tracker write failed: {}", exc)

        logger.info(
            "[SimulationEngine] Generation {} complete | best_score={}",
            record.generation,
            best,
        )
        return record

    def _notify(self, report: RoundReport) -> None:
        for listener in list(self._listeners):
            try:
                listener(report)
            except Exception as exc:  # pylint: disable=broad-except
                logger.warning("[SimulationEngine] Listener {} failed: {}", listener, exc)

    async def _next_tick(self) -> None:
        # pause() sets the event so a pending tick never starts a round
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._wake.wait(), timeout=self.config.tick_interval)

    def _board_width(self) -> int:
        if self.state.data_scale is not None:
            return self.state.data_scale.width
        return self.config.board_size

    def _reached_generation_cap(self) -> bool:
        cap = self.config.max_generations
        return cap is not None and len(self.state.history) >= cap

    def _on_error(self, msg: str) -> None:
        self._consecutive_errors += 1
        self.metrics.errors_encountered += 1
        logger.error("[SimulationEngine] Error #{}: {}", self._consecutive_errors, msg)

    # ----------------------------------------------------------------- outputs

    def snapshot(self) -> SimulationSnapshot:
        state = self.state
        return SimulationSnapshot(
            playing=self._playing,
            generation=state.generation,
            round_progress=state.round_progress,
            rounds_per_generation=self.config.rounds_per_generation,
            board=list(state.board),
            players=[player.model_copy(deep=True) for player in state.players],
            history=list(state.history),
            logs=list(state.log.entries()),
            data_loaded=state.data_loaded,
            model_available=self.adapter.is_available,
        )

    async def get_status(self) -> dict[str, object]:
        """Light, non-blocking status for UIs/health checks."""
        return {
            "playing": self._playing,
            "generation": self.state.generation,
            "round_progress": self.state.round_progress,
            "population_size": len(self.state.players),
            "consecutive_errors": self._consecutive_errors,
            **self.metrics.to_dict(),
        }


def _round_half_up(values: np.ndarray) -> list[int]:
    return [int(v) for v in np.floor(np.asarray(values, dtype=np.float64) + 0.5)]
