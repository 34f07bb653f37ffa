"""Logging setup for the judicial case aggregator.

Records carry a ``client`` field (bound by the portal client) so portal
traffic can be told apart from aggregation messages in the log file.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[client]}</magenta> | <cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[client]} | {name}:{function}:{line} - {message}"


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    rotation: str = "1 day",
    serialize: bool = False,
) -> None:
    """Replace loguru's default sink with console and optional file sinks.

    Args:
        level: Minimum level for both sinks
        log_file: Also write to this file, rotated by ``rotation``
        rotation: Loguru rotation policy for the file sink
        serialize: Write the file sink as JSON lines
    """
    handlers = [{"sink": sys.stderr, "format": CONSOLE_FORMAT, "level": level.upper()}]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            {
                "sink": log_file,
                "format": FILE_FORMAT,
                "level": level.upper(),
                "rotation": rotation,
                "serialize": serialize,
                "enqueue": True,
            }
        )
    logger.configure(handlers=handlers, extra={"client": "-"})
