"""Wall-clock budget for processing one document."""

import logging
import time
from collections.abc import Callable

from .errors import TimeoutExceeded

logger = logging.getLogger(__name__)


class TimeBudget:
    """Cooperative deadline checked at stage boundaries."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.seconds = seconds
        self._clock = clock
        self._started = clock()

    @property
    def elapsed(self) -> float:
        return self._clock() - self._started

    @property
    def exceeded(self) -> bool:
        return self.elapsed > self.seconds

    def check(self, stage: str) -> None:
        """Raise TimeoutExceeded if the budget is spent."""
        elapsed = self.elapsed
        if elapsed > self.seconds:
            logger.warning(f"Time budget exceeded during {stage} after {elapsed:.1f}s")
            raise TimeoutExceeded(stage, elapsed, self.seconds)
