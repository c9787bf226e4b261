import logging
from time import perf_counter
from typing import Callable


def checkpoint(time_ref: float | None = None) -> Callable[..., float]:
    """
    Closure that stores a time checkpoint that is updated at every call.
    Each call logs the time elapsed since the last checkpoint with a custom message.

    Args:
        time_ref: The time reference to start from. By default, the time of the call will be taken.
    Returns:
        The closure.
    """
    time_ref = perf_counter() if time_ref is None else time_ref

    def _closure(message: str = "") -> float:
        """
        Logs the time elapsed since the previous call.

        Args:
            message: Custom message to log. The overall result will be: 'message: time_elapsed'.
        Returns:
            The time elapsed in seconds.
        """
        nonlocal time_ref
        current_time = perf_counter()
        elapsed = current_time - time_ref
        if message != "":
            logging.info(f"{message}: {elapsed:.2f} seconds")
        time_ref = current_time
        return elapsed

    return _closure
