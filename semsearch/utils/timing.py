import time
from functools import wraps
from typing import Any, Callable, Optional
import logging

logger = logging.getLogger(__name__)


def time_function(func: Callable) -> Callable:
    """
    Decorator that logs how long each call of ``func`` takes.

    Args:
        func: Function to time

    Returns:
        Wrapped function that logs execution time at INFO
    """
    @wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        with Timer(func.__name__):
            return func(*args, **kwargs)
    return wrapper


class Timer:
    """
    Context manager for timing code blocks with a monotonic clock.

    ``elapsed_time`` (seconds) is set on exit, even if the block raised.
    """

    def __init__(self, name: str = "Operation", log: bool = True):
        """
        Args:
            name: Name of the operation being timed
            log: Whether to log the elapsed time on exit
        """
        self.name = name
        self.log = log
        self.start_time: Optional[float] = None
        self.elapsed_time: Optional[float] = None

    def __enter__(self) -> 'Timer':
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.elapsed_time = time.perf_counter() - self.start_time
        if self.log:
            logger.info(f"{self.name} completed in {self.elapsed_time:.6f} seconds")

    @property
    def elapsed_ms(self) -> float:
        return 0.0 if self.elapsed_time is None else self.elapsed_time * 1000.0
