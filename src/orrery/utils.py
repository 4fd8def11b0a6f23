"""
Utility functions and classes for the Orrery package.
"""

from time import perf_counter
import logging
import warnings
from typing import Type
from .config import config

logger = logging.getLogger(__name__)


class Timer:
    """
    Context manager for timing code execution.

    Examples
    --------
    >>> from orrery.utils import Timer
    >>> with Timer("Tick"):
    ...     sim.tick(t, dt)
    Tick: 0.000412 s

    >>> with Timer(verbose=False) as t:
    ...     # ... code ...
    >>> t.elapsed
    """
    def __init__(self, name="Operation", verbose=True):
        """
        Parameters
        ----------
        name : str, optional
            Name to report when timing completes (default: "Operation")
        verbose : bool, optional
            Whether to log the timing automatically (default: True)
        """
        self.name = name
        self.verbose = verbose
        self.elapsed = None

    def __enter__(self):
        self.start = perf_counter()
        return self

    def __exit__(self, *args):
        self.end = perf_counter()
        self.elapsed = self.end - self.start
        if self.verbose:
            logger.info("%s: %.6f s", self.name, self.elapsed)


def validation_error(message: str, error_class: Type[Exception] = ValueError):
    """
    Raise error or warn based on config.STRICT_VALIDATION.

    Used for soft validation only: conditions under which results are
    still computable but of documented, degraded quality. Fatal
    configuration errors are raised directly by the caller.

    Parameters
    ----------
    message : str
        Validation error message
    error_class : Type[Exception], optional
        Exception class to raise if STRICT_VALIDATION is True.
        Default: ValueError

    Raises
    ------
    Exception (of type error_class)
        If config.STRICT_VALIDATION is True

    Warns
    -----
    UserWarning
        If config.STRICT_VALIDATION is False

    Examples
    --------
    >>> from orrery.utils import validation_error
    >>> from orrery import config
    >>> config.STRICT_VALIDATION = False
    >>> validation_error("Eccentricity 0.995 exceeds solver accuracy range")
    """
    if config.STRICT_VALIDATION:
        raise error_class(message)
    else:
        warnings.warn(message, UserWarning, stacklevel=2)
