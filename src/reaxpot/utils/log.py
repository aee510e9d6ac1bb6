"""
Logging helpers shared by the ReaxPot engines, readers and CLI.

Every module asks for its logger with ``get_logger(__name__)``. Each
logger gets a single stream handler in the ``time | level | name | message``
layout, and ``set_level`` turns the verbosity of all of them up or down at
once (the CLI calls it with ``--log-level`` or the ``log_level`` setting).
"""

import logging

_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
_DATEFMT = "%H:%M:%S"
_PREFIX = "reaxpot"


def _stream_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    return handler


def get_logger(name: str, level: int | str = logging.INFO) -> logging.Logger:
    """
    Return the logger called ``name``, attaching the ReaxPot handler once.

    Parameters
    ----------
    name : str
        Logger name, usually the calling module's ``__name__``.
    level : int or str, default=logging.INFO
        Initial level, used only when the handler is attached.

    Examples
    --------
    >>> logger = get_logger(__name__)
    >>> logger.debug("bond-order pass finished")
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.addHandler(_stream_handler())
    logger.setLevel(level)
    return logger


def set_level(level: int | str) -> None:
    """Apply ``level`` to every ReaxPot logger created so far."""
    registry = logging.Logger.manager.loggerDict
    for name in list(registry):
        obj = registry[name]
        if name.startswith(_PREFIX) and isinstance(obj, logging.Logger):
            obj.setLevel(level)
