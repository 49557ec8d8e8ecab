"""
Run the Game Pass harvest once, or on a schedule.

Exit status is 0 when the run completed (partial failures included) and 1
when it could not start or was aborted by the strict failure policy.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from pydantic import ValidationError

from core.config import Settings
from core.exceptions import ConfigurationError, SetupError
from core.logging import setup_logging
from harvest.runner import HarvestRunner
from harvest.scheduler import HarvestScheduler

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Harvest Game Pass collections, availability and product details into PostgreSQL.",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        help="Path to a .env file with database credentials and harvest settings.",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once",
        action="store_true",
        help="Run a single harvest and exit (default).",
    )
    mode.add_argument(
        "--schedule",
        action="store_true",
        help="Keep running and harvest every HARVEST_INTERVAL_MINUTES.",
    )

    parser.add_argument(
        "--locales",
        type=str,
        help="Comma-separated locales overriding LOCALES (e.g., en-US,fr-FR).",
    )
    parser.add_argument(
        "--collections",
        type=str,
        help="Comma-separated collection ids overriding COLLECTION_IDS.",
    )
    parser.add_argument(
        "--policy",
        choices=["skip", "abort"],
        help="Availability failure policy overriding AVAILABILITY_FAILURE_POLICY.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Log level overriding LOG_LEVEL.",
    )
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """
    Build settings from the environment, the optional env file and CLI overrides.

    Raises:
        ConfigurationError: If the env file is missing or a value is invalid
    """
    overrides = {}
    if args.locales:
        overrides["LOCALES"] = args.locales
    if args.collections:
        overrides["COLLECTION_IDS"] = args.collections
    if args.policy:
        overrides["AVAILABILITY_FAILURE_POLICY"] = args.policy
    if args.log_level:
        overrides["LOG_LEVEL"] = args.log_level

    if args.env_file and not os.path.isfile(args.env_file):
        raise ConfigurationError(
            "Env file not found",
            context={"env_file": args.env_file}
        )

    try:
        if args.env_file:
            return Settings(_env_file=args.env_file, **overrides)
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid configuration",
            context={"errors": e.errors()},
            original_exception=e
        )


async def run_once(settings: Settings) -> int:
    report = await HarvestRunner(settings).run()
    return report.exit_code


async def run_scheduled(settings: Settings) -> int:
    scheduler = HarvestScheduler(settings)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings(args)
    except ConfigurationError as e:
        setup_logging()
        logger.error(f"Configuration error: {e}")
        return 1

    setup_logging(settings.LOG_LEVEL)
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    try:
        if args.schedule:
            return asyncio.run(run_scheduled(settings))
        return asyncio.run(run_once(settings))
    except SetupError as e:
        logger.error(f"Harvest could not start: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
