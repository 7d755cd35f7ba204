import logging
import sys
from typing import Optional, TextIO, Union

DEFAULT_FORMAT = "%(name)s - %(levelname)s - %(message)s"

LevelLike = Union[str, int]


class _BelowLevelFilter(logging.Filter):
    """Passes records strictly below ``threshold``."""

    def __init__(self, threshold: int) -> None:
        super().__init__()
        self.threshold = threshold

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.threshold


def level_from_name(name: LevelLike, default: int = logging.INFO) -> int:
    """Map 'debug', 'WARNING', 10, ... to a logging level."""
    if isinstance(name, int):
        return name
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else default


def _stream_handler(stream: TextIO, formatter: logging.Formatter, level: int = logging.NOTSET) -> logging.Handler:
    handler = logging.StreamHandler(stream=stream)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_split_stream_logging(
    *,
    level: LevelLike = logging.INFO,
    stderr_level: LevelLike = logging.WARNING,
    formatter: Optional[logging.Formatter] = None,
    logger_name: Optional[str] = None,
) -> logging.Logger:
    """Route records below ``stderr_level`` to stdout and the rest to stderr.

    Lint reports are printed on stdout, so keeping warnings on stderr leaves
    ``--format json`` output parseable. Handlers replace whatever was attached
    to ``logger_name`` (the root logger when None) before.
    """
    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(level_from_name(level))

    formatter = formatter or logging.Formatter(DEFAULT_FORMAT)
    split_at = max(level_from_name(stderr_level, logging.WARNING), logging.DEBUG)

    to_stdout = _stream_handler(sys.stdout, formatter)
    to_stdout.addFilter(_BelowLevelFilter(split_at))
    logger.addHandler(to_stdout)
    logger.addHandler(_stream_handler(sys.stderr, formatter, split_at))
    return logger
