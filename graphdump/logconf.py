import logging
import sys

LOGGER_NAME = "graphdump"
LOG_FORMAT = "[graphdump] %(levelname)s: %(message)s"


class _StderrHandler(logging.StreamHandler):
    """Writes to the current ``sys.stderr`` at emit time, not the one seen at setup."""

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


def level_for(verbose: bool) -> int:
    return logging.DEBUG if verbose else logging.INFO


def configure_logger(level: int = logging.INFO, name: str = LOGGER_NAME) -> logging.Logger:
    """
    Install one stderr handler on the ``graphdump`` logger and return `name`.

    Safe to call repeatedly: the handler is added once, the level is updated.
    """
    root = logging.getLogger(LOGGER_NAME)
    if not any(isinstance(h, _StderrHandler) for h in root.handlers):
        handler = _StderrHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)
    return logging.getLogger(name)
