from __future__ import annotations

import asyncio
from datetime import datetime, timezone
import random
from typing import Awaitable, Callable, Generic, TypeVar

from loguru import logger

from genevo.evolution.engine.config import (
    AutoReproduction,
    CustomBreedReproduction,
    GeneticConfig,
)
from genevo.evolution.engine.distribution import OperatorDistribution
from genevo.evolution.engine.fitness import FitnessEvaluator
from genevo.evolution.engine.metrics import EngineMetrics
from genevo.evolution.engine.replacement import KillWorstReplacement
from genevo.evolution.engine.reproduction import auto_reproduce, batch_reproduce
from genevo.evolution.engine.state import (
    EngineState,
    is_terminal,
    validate_transition,
)
from genevo.evolution.engine.validation import validate_config
from genevo.evolution.models import (
    FitnessRecord,
    GenerationFitnessInfo,
    GenerationInfo,
)
from genevo.exceptions import EngineDefunctError, EvolutionError, GenevoError
from genevo.utils.callbacks import call, fire

__all__ = ["EvolutionEngine"]

T = TypeVar("T")


class EvolutionEngine(Generic[T]):
    """
    Sequential generation loop over opaque individuals:
    - Every external call (generator, fitness, operators, hooks) is awaited
      to completion before the next one starts.
    - Runs until pause(); resume() continues from the current generation.
    - Any fatal error leaves the engine FAILED; build a new one to retry.
    """

    def __init__(self, config: GeneticConfig, *, rng: random.Random | None = None):
        self.config = config
        self.rng = rng or random.Random()

        self.generation: list[T] = []
        self.fitness: list[FitnessRecord[T]] = []
        self.last_generation: list[FitnessRecord[T]] = []

        self.distribution: OperatorDistribution | None = None
        self.replacement: KillWorstReplacement | None = None
        self.evaluator: FitnessEvaluator[T] | None = None

        self._generation_num = 0
        self._running = False
        self._driving = False
        self._state = EngineState.IDLE

        self.metrics = EngineMetrics()

        logger.info(
            "[EvolutionEngine] Init | population_size={}, reproduction={}",
            getattr(config, "population_size", None),
            getattr(getattr(config, "reproduction", None), "kind", None),
        )

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------
    async def start(self) -> None:
        """Validate, seed and score the first population, then run the loop."""
        if is_terminal(self._state):
            raise EngineDefunctError("Engine failed earlier; construct a new one")
        if self._state != EngineState.IDLE:
            raise EvolutionError(
                f"start() called in state {self._state.value}; use resume()"
            )

        self._driving = True
        try:
            result = validate_config(self.config)
            if not result.is_valid:
                logger.error(
                    "[EvolutionEngine] Invalid config ({}): {}",
                    result.reason.value,
                    result.summary,
                )
                self._set_state(EngineState.FAILED)
                result.raise_for_failure()
            logger.debug("[EvolutionEngine] Config OK | {}", result.summary)

            self._running = True
            self._set_state(EngineState.INITIALIZING)
            await self._guarded(self._init)
            await self._loop()
        finally:
            self._driving = False

    def pause(self) -> None:
        """Stop after the step in progress; the engine keeps its state."""
        self._running = False
        logger.info("[EvolutionEngine] Pause requested at generation {}", self._generation_num)

    def rearm(self) -> bool:
        """Set the running flag without driving the loop.

        Returns True when a loop driver is already active and will pick the
        flag up at its next continuation check.
        """
        if is_terminal(self._state):
            raise EngineDefunctError("Engine failed earlier; construct a new one")
        if self._state == EngineState.IDLE:
            raise EvolutionError("Engine not started; call start() first")
        self._running = True
        return self._driving

    async def resume(self) -> None:
        """Restart the loop from the current generation.

        If a driver is already looping (or still initializing) this only
        re-arms the running flag; a second loop over the same state is never
        started.
        """
        if self.rearm():
            logger.debug("[EvolutionEngine] Resume ignored: loop already active")
            return

        logger.info("[EvolutionEngine] Resume at generation {}", self._generation_num)
        self._driving = True
        try:
            await self._loop()
        finally:
            self._driving = False

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    async def _loop(self) -> None:
        self._set_state(EngineState.RUNNING)
        while True:
            await self._guarded(self._step)
            if not self._running:
                break
        self._set_state(EngineState.PAUSED)
        logger.info("[EvolutionEngine] Paused at generation {}", self._generation_num)

    async def _init(self) -> None:
        settings = self.config.reproduction
        self.evaluator = FitnessEvaluator(
            self.config.fitness, self.config.sort, self.config.callbacks
        )
        if isinstance(settings, AutoReproduction):
            self.distribution = OperatorDistribution.from_settings(settings)
            logger.debug(
                "[EvolutionEngine] Auto reproduction over {} operator(s)",
                len(self.distribution),
            )
        if self.config.kill_worst_fraction is not None:
            self.replacement = KillWorstReplacement(self.config.kill_worst_fraction)

        self.generation = []
        for _ in range(self.config.population_size):
            self.generation.append(await call(self.config.generate))
        logger.info("[EvolutionEngine] Seeded {} individual(s)", len(self.generation))

        await self._evaluate()

    async def _step(self) -> None:
        callbacks = self.config.callbacks

        await fire(callbacks.before_next_generation, self.get_generation_info())
        await self._next_generation()
        await fire(callbacks.after_next_generation, self._generation_snapshot())

        await fire(
            callbacks.before_generation_fitness_evaluated, self._generation_snapshot()
        )
        await self._evaluate()
        self.metrics.last_generation_time = datetime.now(timezone.utc)
        await fire(
            callbacks.after_generation_fitness_evaluated, self.get_generation_info()
        )

        logger.info(
            "[EvolutionEngine] Generation {} | best={} | mean={}",
            self._generation_num,
            self.metrics.best_fitness,
            self.metrics.mean_fitness,
        )
        # Yield between generations so pause() and stop() from other tasks land
        # even when every user function is synchronous.
        await asyncio.sleep(0)

    async def _next_generation(self) -> None:
        """Build and install the next generation; nothing changes on failure."""
        previous_size = len(self.generation)
        last_generation = self.fitness
        if self.replacement is not None:
            last_generation = self.replacement.apply(
                last_generation, self.config.population_size, self.config.sort
            )

        settings = self.config.reproduction
        if isinstance(settings, AutoReproduction):
            children = await auto_reproduce(
                last_generation, distribution=self.distribution, rng=self.rng
            )
        elif isinstance(settings, CustomBreedReproduction):
            await fire(self.config.callbacks.on_custom_breed, self._generation_snapshot())
            children = await batch_reproduce(
                last_generation,
                operator=settings.breed,
                expected_size=previous_size,
                label="custom_breed",
            )
        else:
            children = await batch_reproduce(
                last_generation,
                operator=settings.mutate,
                expected_size=previous_size,
                label="custom_mutate",
            )

        self.last_generation = last_generation
        self.generation = children
        self._generation_num += 1
        self.metrics.total_generations = self._generation_num

    async def _evaluate(self) -> None:
        self.fitness = await self.evaluator.evaluate(self.generation)
        self.metrics.record_pass(
            [r.fitness for r in self.fitness],
            self.fitness[0].fitness if self.fitness else None,
        )

    async def _guarded(self, fn: Callable[[], Awaitable[None]]) -> None:
        try:
            await fn()
        except asyncio.CancelledError:
            # An interrupted step may leave a half-built generation behind.
            self._running = False
            if self._state != EngineState.FAILED:
                self._set_state(EngineState.FAILED)
            logger.warning(
                "[EvolutionEngine] Cancelled during generation {}", self._generation_num
            )
            raise
        except GenevoError as exc:
            self._fail(exc)
            raise
        except Exception as exc:
            self._fail(exc)
            raise EvolutionError(f"Evolution step failed: {exc}") from exc

    def _fail(self, exc: BaseException) -> None:
        self._running = False
        if self._state != EngineState.FAILED:
            self._set_state(EngineState.FAILED)
        logger.error(
            "[EvolutionEngine] Fatal at generation {}: {}: {}",
            self._generation_num,
            type(exc).__name__,
            exc,
        )

    def _set_state(self, state: EngineState) -> None:
        validate_transition(self._state, state)
        if state != self._state:
            logger.debug("[EvolutionEngine] State {} -> {}", self._state.value, state.value)
        self._state = state

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def get_generation_info(self) -> GenerationFitnessInfo:
        return GenerationFitnessInfo(
            generation_num=self._generation_num,
            generation=list(self.generation),
            fitness=list(self.fitness),
        )

    def _generation_snapshot(self) -> GenerationInfo:
        return GenerationInfo(
            generation_num=self._generation_num,
            generation=list(self.generation),
        )

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def generation_num(self) -> int:
        return self._generation_num

    def is_running(self) -> bool:
        return self._running

    async def get_status(self) -> dict[str, object]:
        """Light, non-blocking status for UIs/health checks."""
        return {
            "state": self._state.value,
            "running": self._running,
            "generation_num": self._generation_num,
            **self.metrics.to_dict(),
        }
