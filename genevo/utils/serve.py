import asyncio
import contextlib
import signal

from loguru import logger

from genevo.runner.evolution_runner import EvolutionRunner


async def serve_until_signal(runner: EvolutionRunner) -> None:
    """
    Block until SIGINT/SIGTERM arrives or the runner's engine task finishes
    (paused by a hook, or failed), then stop the runner.

    A failure inside the engine task is re-raised to the caller.
    """
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _set() -> None:
        if not stop_event.is_set():
            logger.info("[serve] Signal received, stopping")
            stop_event.set()

    loop.add_signal_handler(signal.SIGINT, _set)
    loop.add_signal_handler(signal.SIGTERM, _set)

    waiter = asyncio.create_task(stop_event.wait())
    try:
        engine_task = runner.task
        if engine_task is not None and not engine_task.done():
            await asyncio.wait(
                {waiter, engine_task}, return_when=asyncio.FIRST_COMPLETED
            )
        else:
            await waiter

        await runner.stop()
    finally:
        if not waiter.done():
            waiter.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await waiter
        loop.remove_signal_handler(signal.SIGINT)
        loop.remove_signal_handler(signal.SIGTERM)
