#!/usr/bin/env python3
"""CLI entrypoint for the simulated trading desk.

Usage::

    python run_engine.py
    python run_engine.py --config config/example.yaml --log-level DEBUG

The engine loads configuration from the optional YAML file, overlays any
``TRADING_*`` environment variables (a ``.env`` file is read first), runs one
tick immediately and then one every ``poll_interval_seconds`` until
interrupted. The full state is rewritten to ``output_path`` after every tick.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from models.config import EngineConfig
from oracles.registry import available_providers
from simulation.engine import TradingEngine


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the simulated LLM trading desk.",
    )
    parser.add_argument(
        "--config",
        default=None,
        type=str,
        help="Path to a YAML configuration file (defaults apply when omitted).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    return parser.parse_args()


def _setup_logging(level: str) -> None:
    """Configure root logger with a clean format."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


async def _run(config: EngineConfig) -> None:
    engine = TradingEngine(config)
    try:
        await engine.start()
        await asyncio.Event().wait()
    finally:
        engine.stop()
        await engine.wait_idle()
        await engine.aclose()


def main() -> int:
    args = _parse_args()
    _setup_logging(args.log_level)
    load_dotenv()  # auto-load .env file if present

    logger = logging.getLogger(__name__)
    logger.info("Loading config from '%s'...", args.config or "<defaults + environment>")

    try:
        config = EngineConfig.load(args.config)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2
    if config.oracle.provider.strip().lower() not in available_providers():
        logger.error(
            "Unknown oracle provider '%s'. Available: %s.",
            config.oracle.provider,
            ", ".join(available_providers()),
        )
        return 2

    logger.info("Config loaded: %s via oracle '%s'", config.symbols, config.oracle.provider)
    try:
        asyncio.run(_run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted; engine shut down.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
