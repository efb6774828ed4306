import logging
import sys
from typing import Iterable

NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "multipart")

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", quiet: Iterable[str] = NOISY_LOGGERS) -> None:
    """
    Configure stdout logging for the statistics service.

    Loggers in `quiet` are held at WARNING unless the service itself runs at DEBUG.
    """
    root_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=root_level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if root_level > logging.DEBUG:
        for name in quiet:
            logging.getLogger(name).setLevel(logging.WARNING)
