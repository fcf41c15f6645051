import asyncio
import contextlib

from loguru import logger

from genevo.evolution.engine import EngineState, EvolutionEngine


class EvolutionRunner:
    """Drives an EvolutionEngine as a background asyncio task."""

    def __init__(self, engine: EvolutionEngine) -> None:
        self._engine = engine
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self._engine.start(), name="evolution-engine")
        logger.info("[EvolutionRunner] Evolution engine started")

    def pause(self) -> None:
        self._engine.pause()

    def resume(self) -> None:
        if self._task and not self._task.done():
            # The tracked task still owns the loop (or is about to start it).
            if self._engine.state != EngineState.IDLE:
                self._engine.rearm()
            logger.debug("[EvolutionRunner] Engine task active; running flag re-armed")
            return
        self._task = asyncio.create_task(self._engine.resume(), name="evolution-engine")
        logger.info("[EvolutionRunner] Evolution engine resumed")

    async def stop(self) -> None:
        """Pause the engine and wait for the step in progress to finish."""
        self._engine.pause()
        if self._task:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
            logger.info("[EvolutionRunner] Evolution engine stopped")

    def is_running(self) -> bool:
        return self._engine.is_running()

    async def get_status(self) -> dict[str, object]:
        return await self._engine.get_status()

    @property
    def task(self) -> asyncio.Task | None:
        return self._task
