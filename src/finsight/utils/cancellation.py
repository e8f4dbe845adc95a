"""Cooperative cancellation token for in-flight API requests."""
import threading

from .exceptions import CancellationError


class CancellationToken:
    """
    One-shot cancellation signal shared between a caller and a worker.

    The worker polls the token at its checkpoints; cancelling never interrupts
    a blocking call, it only makes the next checkpoint raise.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> bool:
        """Signal cancellation. Returns False if the token was already cancelled."""
        if self._event.is_set():
            return False
        self._event.set()
        return True

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, checkpoint: str = "") -> None:
        """Raise CancellationError if cancellation has been requested."""
        if self._event.is_set():
            where = f" ({checkpoint})" if checkpoint else ""
            raise CancellationError(f"The operation has been cancelled{where}")
