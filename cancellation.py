"""
Cooperative cancellation shared by the batch, the matcher and the AI
matcher.
"""

import threading


class MatchingCancelled(Exception):
    """Raised when a batch's cancellation token fires."""


class CancellationToken:
    """Cancellation flag shared by all batch workers."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; returns True early if cancelled."""
        return self._event.wait(seconds)

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise MatchingCancelled("Matching cancelled")

    def sleep(self, seconds: float) -> None:
        """Sleep up to ``seconds``, raising MatchingCancelled if cancelled."""
        if seconds > 0 and self.wait(seconds):
            raise MatchingCancelled("Matching cancelled")
        self.raise_if_cancelled()
