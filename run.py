import asyncio
from datetime import datetime, timezone
import time

from dotenv import load_dotenv
import hydra
from hydra.core.hydra_config import HydraConfig
from hydra.utils import instantiate, to_absolute_path
from loguru import logger
from omegaconf import DictConfig

from sherlok.simulation import SimulationConfig, SimulationEngine
from sherlok.utils.logger_setup import setup_logger
from sherlok.utils.serve import serve_until_signal
from sherlok.utils.trackers import LogWriter, TBConfig, init_tb


async def run_simulation(cfg: DictConfig):
    start_time = time.time()

    logger.info("=" * 80)
    logger.info("Sherlok Population Simulation")
    logger.info("=" * 80)
    logger.info(f"Start time: {datetime.now(timezone.utc).isoformat()}")
    logger.info("")

    writer: LogWriter | None = None
    engine: SimulationEngine | None = None
    try:
        logger.info("Step 1/4: Initializing components...")
        sim_config: SimulationConfig = instantiate(cfg.simulation)
        tb_config = (
            TBConfig(logdir=to_absolute_path(cfg.tracker.logdir))
            if cfg.tracker.logdir
            else None
        )
        writer = init_tb(tb_config)
        engine = SimulationEngine(sim_config, writer=writer)
        logger.info("Step 1/4: Complete")
        logger.info("")

        logger.info("Step 2/4: Loading draw data...")
        if cfg.data.csv_path:
            records = engine.load_csv(to_absolute_path(cfg.data.csv_path))
            logger.info(f"Step 2/4: Loaded {records} draw records")
        else:
            logger.info("Step 2/4: No CSV configured, boards will be synthesised")
        logger.info("")

        logger.info("Step 3/4: Loading model...")
        if cfg.model.descriptor_path and cfg.model.weights_path:
            engine.load_model(
                to_absolute_path(cfg.model.descriptor_path),
                to_absolute_path(cfg.model.weights_path),
            )
            logger.info("Step 3/4: Trained model loaded")
        else:
            engine.use_placeholder_model()
            logger.info("Step 3/4: No model configured, using an untrained placeholder")
        logger.info("")

        logger.info("Step 4/4: Playing...")
        max_gens: int | None = sim_config.max_generations
        logger.info(f"  Max generations: {max_gens if max_gens else 'unlimited'}")
        logger.info(f"  Population size: {sim_config.population_size} players")
        engine.play()
        await serve_until_signal(
            stop_coros=(engine.shutdown(),),
            on_stop=(engine.task,),
        )

        for record in engine.snapshot().history:
            logger.info(f"  Generation {record.generation}: best score {record.score}")

    except KeyboardInterrupt:
        logger.info("Simulation interrupted by user")
    except Exception as e:  # pylint: disable=broad-except
        logger.error(f"Simulation failed: {e}")
        raise
    finally:
        logger.info("")
        logger.info("Starting cleanup...")
        if engine is not None:
            await engine.shutdown()
            logger.info(f"Final status: {await engine.get_status()}")
        if writer is not None:
            writer.close()
        duration = time.time() - start_time
        logger.info(f"Total simulation duration: {duration:.2f} seconds")
        logger.info(f"End time: {datetime.now(timezone.utc).isoformat()}")
        logger.info("=" * 80)


@hydra.main(version_base=None, config_path="config", config_name="config")
def main(cfg: DictConfig) -> None:
    """Main entrypoint with Hydra configuration management."""
    load_dotenv()

    log_paths = setup_logger(
        log_dir=cfg.logging.log_dir,
        level=cfg.logging.level,
        rotation=cfg.logging.rotation,
        retention=cfg.logging.retention,
    )
    logger.info(
        "Simulation working directory: {}.",
        HydraConfig.get().runtime.output_dir,
    )
    logger.info("Run log: {}, event log: {}", log_paths.run_log, log_paths.event_log)
    asyncio.run(run_simulation(cfg))


if __name__ == "__main__":
    main()
