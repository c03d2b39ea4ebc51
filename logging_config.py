"""
Logging Setup for Propagation Scripts

The ``orbit_propagator`` package never installs handlers. It logs element
parsing failures at ERROR, decayed orbits and Kepler non-convergence at
WARNING, and integrator restarts and periodic-term refreshes at DEBUG. A
script that drives it calls ``configure_logging`` once.

The propagator's own verbosity is set apart from the script's: the DEBUG
messages fire on nearly every deep-space query, so a sweep usually wants
``propagator_level=logging.INFO`` even when the script itself logs at DEBUG.

Usage:
    from logging_config import configure_logging, get_logger

    configure_logging(propagator_level=logging.DEBUG)
    logger = get_logger(__name__)
"""

import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "orbit_propagator"

# Plotting backends are chatty at DEBUG
NOISY_LOGGERS = ("matplotlib", "PIL")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    propagator_level: Optional[int] = None,
) -> None:
    """
    Install console (and optionally file) handlers on the root logger.

    Calling it again replaces the handlers of an earlier call.

    Parameters
    ----------
    level : int
        Level of the root logger and of the script's own loggers
    log_file : str, optional
        Also write the log to this file
    propagator_level : int, optional
        Level of the ``orbit_propagator`` loggers. Defaults to ``level``.
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )

    logging.getLogger(PACKAGE_LOGGER).setLevel(
        level if propagator_level is None else propagator_level
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Logger for a script module."""
    return logging.getLogger(name)
