"""Bridge entrypoint. Loads config, builds bots, connects them and runs until cancelled."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from loguru import logger

from ircord import __version__
from ircord.bot import Bot, create_bots
from ircord.config import load_config_with_env
from ircord.errors import ConfigurationError

# Third-party libraries to intercept and route through loguru
_INTERCEPTED_LIBRARIES = ["pydle", "pydle.client", "pydle.connection", "discord", "discord.client", "discord.gateway"]


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru, keeping the original location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            log_level: str | int = logger.level(record.levelname).name
        except ValueError:
            log_level = record.levelno
        msg = record.getMessage().replace("{", "{{").replace("}", "}}")
        logger.patch(
            lambda r: r.update(
                name=record.name,
                function=record.funcName,
                line=record.lineno,
            ),
        ).opt(exception=record.exc_info).log(log_level, msg)


def _intercept_logging(level: str) -> None:
    """Route pydle and discord.py logs to loguru at the given level."""
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for lib in _INTERCEPTED_LIBRARIES:
        lib_logger = logging.getLogger(lib)
        lib_logger.handlers = [InterceptHandler()]
        lib_logger.propagate = False
        lib_logger.setLevel(level)


def setup_logging(verbose: bool = False) -> str:
    """Configure loguru. Replace default logging.
    Level: verbose=True or LOG_LEVEL=DEBUG enables DEBUG; otherwise INFO.
    Returns the level in use."""
    level = "INFO"
    if verbose:
        level = "DEBUG"
    else:
        env_level = (os.environ.get("LOG_LEVEL") or "").upper()
        if env_level in ("DEBUG", "INFO", "WARNING", "ERROR"):
            level = env_level

    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format=("<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"),
    )
    _intercept_logging(level)
    return level


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="ircord: Discord <-> IRC chat bridge")
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entrypoint."""
    args = _parse_args(argv)
    setup_logging(args.verbose)

    if not args.config.exists():
        logger.error("Config file not found: {}", args.config)
        sys.exit(1)

    try:
        bots = create_bots(load_config_with_env(args.config))
    except ConfigurationError as exc:
        logger.error("Invalid configuration in {}: {}", args.config, exc)
        sys.exit(1)
    logger.info("Config loaded from {}: {} bot(s)", args.config, len(bots))

    try:
        asyncio.run(_run(bots))
    except KeyboardInterrupt:
        logger.info("Interrupted")


async def _run(bots: list[Bot]) -> None:
    """Async run loop. Connect every bot and wait."""
    logger.info("Starting bridges")
    for bot in bots:
        await bot.connect()

    try:
        while True:
            await asyncio.sleep(60)
    except asyncio.CancelledError:
        logger.info("Bridge shutting down")
        for bot in bots:
            await bot.disconnect()


if __name__ == "__main__":
    main()
