"""Loguru logging configuration"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


def setup_logging(level: str = "INFO", log_format: str = "pretty", log_dir: Optional[str] = None) -> None:
    """Configure loguru for the application."""
    logger.remove()

    if log_format == "pretty":
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level>"
            ),
            level=level,
            colorize=True,
        )
    else:
        logger.add(sys.stderr, format="{message}", level=level, serialize=True)

    if log_dir:
        logs_path = Path(log_dir)
        logs_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            logs_path / "invoice_workflow_{time:YYYY-MM-DD}.log",
            rotation="00:00",
            retention="30 days",
            compression="gz",
            level="INFO",
        )


log = logger
