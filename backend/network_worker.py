"""
Network Worker - runs blocking backend calls in background threads.

Event fetches, mutations and notification dispatch block on HTTP; running
them in a ThreadPoolExecutor keeps the window responsive. Results are
delivered via Qt signals, which Qt queues onto the main thread.
"""

from concurrent.futures import ThreadPoolExecutor, Future
import itertools
from typing import Callable, Optional
import traceback

from PySide6.QtCore import QObject, Signal

from .debug_log import debug_print, is_debug, warn_print


class NetworkWorker(QObject):
    """
    Runs backend operations in background threads.

    Signals are emitted on completion and delivered on the main thread.
    """

    # Args: (operation_id: str, result: object)
    operation_finished = Signal(str, object)

    # Args: (operation_id: str, error_message: str)
    operation_error = Signal(str, str)

    def __init__(self, max_workers: int = 3, parent=None):
        super().__init__(parent)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="network")
        self._pending: dict[str, Future] = {}
        self._ids = itertools.count(1)

    def next_operation_id(self, prefix: str) -> str:
        """A fresh id such as 'mutation-7'; never reused by this worker."""
        return f"{prefix}-{next(self._ids)}"

    def submit(self, operation_id: str, func: Callable, *args,
               supersede: bool = False, **kwargs) -> Future:
        """
        Submit a blocking operation to run in a background thread.

        With `supersede`, a still-queued operation with the same id is
        cancelled first, so only the latest fetch reports back. Other
        operations are never dropped.
        """
        if supersede:
            self.cancel(operation_id)
        future = self._executor.submit(func, *args, **kwargs)
        self._pending[operation_id] = future
        future.add_done_callback(lambda f: self._on_done(operation_id, f))
        debug_print("WORKER", f"Submitted '{operation_id}'")
        return future

    def _on_done(self, operation_id: str, future: Future) -> None:
        if self._pending.get(operation_id) is future:
            self._pending.pop(operation_id, None)
        if future.cancelled():
            debug_print("WORKER", f"Operation '{operation_id}' cancelled")
            return

        try:
            result = future.result()
        except Exception as e:
            error_msg = f"{type(e).__name__}: {e}"
            warn_print("WORKER", f"Operation '{operation_id}' failed: {error_msg}")
            if is_debug():
                traceback.print_exception(e)
            self.operation_error.emit(operation_id, error_msg)
            return
        self.operation_finished.emit(operation_id, result)

    def is_pending(self, operation_id: str) -> bool:
        return operation_id in self._pending

    def cancel(self, operation_id: str) -> bool:
        """
        Attempt to cancel a pending operation.

        Returns True if cancelled, False if already running or completed.
        """
        future = self._pending.get(operation_id)
        if future:
            return future.cancel()
        return False

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=True)


_global_worker: Optional[NetworkWorker] = None


def get_network_worker() -> NetworkWorker:
    """Get the global NetworkWorker instance (created lazily)."""
    global _global_worker
    if _global_worker is None:
        _global_worker = NetworkWorker()
    return _global_worker


def shutdown_network_worker() -> None:
    global _global_worker
    if _global_worker is not None:
        _global_worker.shutdown(wait=False)
        _global_worker = None
