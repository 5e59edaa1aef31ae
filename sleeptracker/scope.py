"""Task scopes tying background storage work to a controller's lifetime.

A scope pairs two execution contexts.  ``launch`` runs a unit of work on
the background context and hands its result back on the UI context;
``post`` runs a callable on the UI context directly.  ``cancel`` ends the
scope: queued work is dropped, results that arrive later are discarded and
further calls are ignored.

``ThreadedScope`` is used by the application.  Work runs on a single
worker thread so actions reach storage in the order they were issued, and
results are queued until the UI loop calls ``drain``.  ``ImmediateScope``
runs everything inline and is what the tests use.
"""
from __future__ import annotations

import logging
import queue
from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable, Optional

from sleeptracker.data import StorageFailure


logger = logging.getLogger(__name__)

ErrorHandler = Callable[[StorageFailure], None]


class Scope:
    """Base class holding the cancellation flag and error routing."""

    def __init__(self, on_error: Optional[ErrorHandler] = None) -> None:
        self.on_error = on_error
        self.cancelled = False

    def launch(self, work: Callable[[], Any], on_result: Optional[Callable[[Any], None]] = None) -> None:
        raise NotImplementedError

    def post(self, fn: Callable[[], None]) -> None:
        raise NotImplementedError

    def cancel(self) -> None:
        self.cancelled = True

    def _deliver(self, work: Callable[[], Any], outcome: Any, error: Optional[BaseException],
                 on_result: Optional[Callable[[Any], None]]) -> None:
        """Finish a launched unit of work on the UI context."""
        if self.cancelled:
            logger.debug("Dropping result of %r, scope cancelled", work)
            return
        if error is None:
            if on_result is not None:
                on_result(outcome)
            return
        if isinstance(error, StorageFailure) and self.on_error is not None:
            logger.error("Storage operation failed: %s", error, exc_info=error)
            self.on_error(error)
            return
        raise error


class ImmediateScope(Scope):
    """Runs work and its continuation synchronously on the calling thread."""

    def launch(self, work: Callable[[], Any], on_result: Optional[Callable[[Any], None]] = None) -> None:
        if self.cancelled:
            logger.debug("Ignoring launch on cancelled scope")
            return
        try:
            outcome = work()
        except StorageFailure as exc:
            self._deliver(work, None, exc, on_result)
            return
        self._deliver(work, outcome, None, on_result)

    def post(self, fn: Callable[[], None]) -> None:
        if not self.cancelled:
            fn()


class ThreadedScope(Scope):
    """
    Background work on a worker thread, continuations on the UI thread.

    Nothing runs on the UI thread until ``drain`` is called, so the owner
    must call it periodically from its event loop.
    """

    def __init__(self, on_error: Optional[ErrorHandler] = None, max_workers: int = 1) -> None:
        super().__init__(on_error)
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="sleeptracker-io")
        self.ui_queue: "queue.Queue[Callable[[], None]]" = queue.Queue()
        self.lock = Lock()

    def launch(self, work: Callable[[], Any], on_result: Optional[Callable[[Any], None]] = None) -> None:
        with self.lock:
            if self.cancelled:
                logger.debug("Ignoring launch on cancelled scope")
                return
            future = self.executor.submit(work)

        def done(fut: Future) -> None:
            if fut.cancelled():
                return
            error = fut.exception()
            outcome = None if error is not None else fut.result()
            self.ui_queue.put(lambda: self._deliver(work, outcome, error, on_result))

        future.add_done_callback(done)

    def post(self, fn: Callable[[], None]) -> None:
        if not self.cancelled:
            self.ui_queue.put(fn)

    def drain(self) -> int:
        """Run queued UI-context callables; return how many ran."""
        count = 0
        while not self.cancelled:
            try:
                fn = self.ui_queue.get_nowait()
            except queue.Empty:
                break
            count += 1
            try:
                fn()
            except Exception:
                # One bad continuation must not stall the rest of the queue.
                logger.exception("UI continuation failed")
        return count

    def cancel(self) -> None:
        with self.lock:
            super().cancel()
            self.executor.shutdown(wait=False, cancel_futures=True)
        # Pending continuations are dropped with the scope.
        while True:
            try:
                self.ui_queue.get_nowait()
            except queue.Empty:
                break
