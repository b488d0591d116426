"""Cooperative cancellation shared by every step of a sync run."""
import logging
import signal
import threading

log = logging.getLogger(__name__)


class Cancelled(Exception):
    """Raised at a suspension point once cancellation has been requested."""


class CancellationToken:
    def __init__(self):
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self):
        self._event.set()

    def raise_if_cancelled(self):
        if self._event.is_set():
            raise Cancelled("Sync run was cancelled")

    def install_signal_handlers(self):
        """Cancel on SIGINT/SIGTERM. Only valid from the main thread."""

        def handler(signum, _frame):
            log.warning("Received %s, cancelling", signal.Signals(signum).name)
            self.cancel()

        signal.signal(signal.SIGINT, handler)
        signal.signal(signal.SIGTERM, handler)


def ensure_token(cancellation=None) -> CancellationToken:
    return cancellation if cancellation is not None else CancellationToken()
