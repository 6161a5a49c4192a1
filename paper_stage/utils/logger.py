import sys
from loguru import logger
from pathlib import Path
from typing import Optional

_configured = False

def setup_logger(log_level: str = "INFO", log_file: Optional[Path] = None):
    global _configured

    if _configured and log_file is None:
        return logger

    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=log_level,
        colorize=True,
    )

    # DEBUG file sink, tagged with the emitting thread
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {thread.name} - {message}",
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
            enqueue=True,
        )

    _configured = True
    return logger
