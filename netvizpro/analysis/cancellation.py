"""
Cancellation for batch analyses

Batch layers (aggregation, transit, matrix, what-if diff) check a token at
the top of every outer pair iteration. A cancelled batch returns whatever
it already computed, flagged as cancelled, unless the caller asked to
discard partial results.
"""

import logging
import threading
import time
from typing import Optional

from ..errors import AnalysisCancelled

logger = logging.getLogger(__name__)


class CancellationToken:
    """
    Caller-held cancellation flag with an optional deadline

    Safe to share between threads: cancel() may be called from any thread
    while a batch is running.
    """

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize token

        Args:
            timeout: Seconds from now after which the token reports cancelled
        """
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self):
        """Request cancellation"""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._event.set()
            return True
        return False

    @property
    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, None when there is no deadline"""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())


def is_cancelled(token: Optional[CancellationToken]) -> bool:
    return token is not None and token.is_cancelled


def finish_cancelled(operation: str, completed: int, discard_partial: bool):
    """
    Log a cancelled batch and raise if partial results must be discarded

    Raises:
        AnalysisCancelled: discard_partial is set
    """
    logger.warning(f"{operation} cancelled after {completed} pairs")
    if discard_partial:
        raise AnalysisCancelled(operation, completed)
