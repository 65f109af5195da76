import logging
import os

from rich.logging import RichHandler

_LEVELS_BY_ENV = {
    "production": logging.WARNING,
    "test": logging.WARNING,
}


class PaddedNameFormatter(logging.Formatter):
    """Pads logger names to the widest one seen so far, so messages line up."""

    width = 12

    def format(self, record):
        PaddedNameFormatter.width = max(PaddedNameFormatter.width, len(record.name))
        record.name = record.name.ljust(PaddedNameFormatter.width)
        return super().format(record)


def _resolve_level() -> int:
    if os.getenv("DEBUG"):
        return logging.DEBUG
    return _LEVELS_BY_ENV.get(os.getenv("MEDSTORE_ENV", ""), logging.INFO)


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger writing through a RichHandler.

    Level is DEBUG when $DEBUG is set, WARNING for the production and test
    environments, INFO otherwise.
    """
    logger = logging.getLogger(name or "medstore")
    level = _resolve_level()
    logger.setLevel(level)

    if not logger.handlers:
        handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(PaddedNameFormatter("[%(name)s]  %(message)s"))
        handler.setLevel(level)
        logger.addHandler(handler)
        logger.propagate = False
        logger.debug(f"Logger '{logger.name}' ready.")

    return logger
