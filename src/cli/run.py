import argparse
import asyncio
import logging
import sys
import time
from typing import Optional

from services.config import ConfigError, load_config, load_settings
from services.logging import setup_logging
from services.scheduler import next_run_time, seconds_until
from workflows.digest import DigestRunError, RunReport
from workflows.factory import create_assembler

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RUN_FAILED = 1
EXIT_CONFIG = 2


async def run_digest(config_path: Optional[str] = None, *, dry_run: bool = False) -> RunReport:
    """
    Load configuration, check secrets, then run one digest pass.
    Raises ConfigError before any external call when something is missing.
    """
    start_time = time.perf_counter()

    settings = load_settings()
    config = load_config(config_path)
    settings.require_secrets(config.llm.provider)

    assembler = create_assembler(config, settings, dry_run=dry_run)
    try:
        return await assembler.run()
    finally:
        logger.info(f"Total time: {time.perf_counter() - start_time:.1f}s")


async def run_daemon(config_path: Optional[str], hour: int, dry_run: bool) -> None:
    """Run once a day at `hour`:00 UTC until interrupted."""
    while True:
        run_at = next_run_time(hour)
        logger.info(f"Next digest run at {run_at.isoformat()}")
        await asyncio.sleep(seconds_until(run_at))

        try:
            await run_digest(config_path, dry_run=dry_run)
        except ConfigError as e:
            logger.error(f"Configuration error: {e}")
        except DigestRunError as e:
            logger.error(str(e))
        except Exception as e:
            logger.exception(f"Digest run crashed: {e}")


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Send the daily Bird Digest")
    parser.add_argument("--config", default=None,
                        help="Path to config.yml (default: resources/config.yml)")
    parser.add_argument("--dry-run", action="store_true",
                        help="Write digests to OUTPUT_DIR and keep state in memory")
    parser.add_argument("--daemon", action="store_true",
                        help="Keep running and send once a day")
    parser.add_argument("--hour", type=int, default=8,
                        help="UTC hour for daemon runs (default: 8)")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (default: LOG_LEVEL or INFO)")

    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ConfigError as e:
        setup_logging()
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG

    setup_logging(args.log_level or settings.LOG_LEVEL)

    if args.daemon:
        # Fail at startup rather than at the first scheduled run
        try:
            settings.require_secrets(load_config(args.config).llm.provider)
        except ConfigError as e:
            logger.error(f"Configuration error: {e}")
            return EXIT_CONFIG

        try:
            asyncio.run(run_daemon(args.config, args.hour, args.dry_run))
        except KeyboardInterrupt:
            logger.info("Daemon stopped")
        return EXIT_OK

    try:
        asyncio.run(run_digest(args.config, dry_run=args.dry_run))
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG
    except DigestRunError as e:
        logger.error(str(e))
        return EXIT_RUN_FAILED

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
