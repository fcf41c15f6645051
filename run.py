import asyncio
from datetime import datetime, timezone
import random
import time

import hydra
from hydra.core.hydra_config import HydraConfig
from loguru import logger
from omegaconf import DictConfig, OmegaConf

from genevo import EngineCallbacks, EvolutionEngine, GenerationFitnessInfo
from genevo.runner import EvolutionRunner
from genevo.utils.logger_setup import setup_logger
from genevo.utils.serve import serve_until_signal
from problems.target_practice import Arena, TargetPractice


async def run_experiment(cfg: DictConfig):
    start_time = time.time()

    logger.info("=" * 80)
    logger.info("genevo target practice")
    logger.info("=" * 80)
    logger.info(f"Start time: {datetime.now(timezone.utc).isoformat()}")

    rng = random.Random(cfg.seed)
    problem = TargetPractice(Arena(**OmegaConf.to_container(cfg.arena)), rng=rng)
    max_gens: int | None = cfg.max_generations
    engine: EvolutionEngine | None = None

    def report(info: GenerationFitnessInfo) -> None:
        best = info.fitness[0]
        logger.info(
            "Generation {} | best aim=({:.2f}, {:.2f}) fitness={:.2f}",
            info.generation_num,
            best.individual.x,
            best.individual.y,
            best.fitness,
        )
        if max_gens and info.generation_num >= max_gens:
            engine.pause()

    try:
        config = problem.build_config(
            population_size=cfg.population_size,
            kill_worst_fraction=cfg.kill_worst_fraction,
            callbacks=EngineCallbacks(after_generation_fitness_evaluated=report),
        )
        engine = EvolutionEngine(config, rng=rng)
        runner = EvolutionRunner(engine)

        logger.info(f"  Population size: {cfg.population_size}")
        logger.info(f"  Max generations: {max_gens if max_gens else 'unlimited'}")

        runner.start()
        await serve_until_signal(runner)
        logger.info("Final status: {}", await runner.get_status())

    except KeyboardInterrupt:
        logger.info("Evolution interrupted by user")
    except Exception as e:  # pylint: disable=broad-except
        logger.error(f"Evolution failed: {e}")
        raise
    finally:
        duration = time.time() - start_time
        logger.info(f"Total duration: {duration:.2f} seconds")
        logger.info(f"End time: {datetime.now(timezone.utc).isoformat()}")
        logger.info("=" * 80)


@hydra.main(version_base=None, config_path="config", config_name="config")
def main(cfg: DictConfig) -> None:
    """Main entrypoint with Hydra configuration management."""
    log_file_path = setup_logger(
        log_dir=cfg.logging.log_dir,
        level=cfg.logging.level,
        rotation=cfg.logging.rotation,
        retention=cfg.logging.retention,
    )
    logger.info(
        "Experiment working directory: {}.",
        HydraConfig.get().runtime.output_dir,
    )
    logger.info(f"Log file: {log_file_path}")
    asyncio.run(run_experiment(cfg))


if __name__ == "__main__":
    main()
