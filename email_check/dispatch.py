"""
Dispatch Module

Execution contexts that completion callbacks are delivered on.

Lookups finish on arbitrary worker threads; a dispatcher moves the callback
onto one designated context so presentation code stays single-threaded.
"""

import asyncio
import logging
import queue
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def _run_callback(fn: Callable, *args) -> None:
    try:
        fn(*args)
    except Exception:
        logger.exception("Completion callback %r raised", fn)


class Dispatcher(ABC):
    """Abstract base class for callback delivery contexts."""

    @abstractmethod
    def dispatch(self, fn: Callable, *args) -> None:
        """
        Schedule fn(*args) on this context. Never runs it inline.

        Args:
            fn: The callback
            *args: Arguments passed to the callback
        """
        pass

    def shutdown(self) -> None:
        """Release any resources held by the dispatcher."""
        pass


class SerialDispatcher(Dispatcher):
    """
    Runs callbacks one at a time on a single dedicated thread.

    Callbacks run in the order their checks completed.
    """

    def __init__(self, name: str = "email-check-callbacks"):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)

    def dispatch(self, fn: Callable, *args) -> None:
        self._executor.submit(_run_callback, fn, *args)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class LoopDispatcher(Dispatcher):
    """Delivers callbacks on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.get_running_loop()

    def dispatch(self, fn: Callable, *args) -> None:
        self.loop.call_soon_threadsafe(_run_callback, fn, *args)


class QueueDispatcher(Dispatcher):
    """
    Queues callbacks until the owning thread pumps them.

    Models a UI main loop: whichever thread calls run_pending() is the
    context the callbacks run on.
    """

    def __init__(self):
        self._queue = queue.Queue()

    def dispatch(self, fn: Callable, *args) -> None:
        self._queue.put((fn, args))

    def run_pending(self, timeout: Optional[float] = None) -> int:
        """
        Run queued callbacks.

        Args:
            timeout: Seconds to wait for the first callback if none is queued
                     (None means do not wait)

        Returns:
            Number of callbacks run
        """
        count = 0
        block = timeout is not None
        while True:
            try:
                fn, args = self._queue.get(block=block, timeout=timeout)
            except queue.Empty:
                return count
            _run_callback(fn, *args)
            count += 1
            block = False

    @property
    def pending(self) -> int:
        """Number of callbacks waiting to run."""
        return self._queue.qsize()
