"""Utilities for running deferred interaction work in the background."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from contextvars import copy_context
from typing import Any, Callable

import structlog
from structlog.contextvars import bind_contextvars, get_contextvars

logger = structlog.get_logger(__name__)


class BackgroundTasks:
    """Shared thread pool that tracks submitted work until it completes.

    Futures stay registered until they finish so the host can drain them
    (``wait``/``shutdown``) before the process exits.
    """

    def __init__(self, *, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="deferred")
        self._lock = threading.Lock()
        self._pending: set[Future] = set()

    def submit(
        self,
        func: Callable[..., Any],
        /,
        *args: Any,
        trace_id: str | None = None,
        **kwargs: Any,
    ) -> Future:
        """Submit *func* with the caller's structlog context and return a Future."""

        context = copy_context()

        if trace_id is not None:
            existing_trace = context.run(lambda: get_contextvars().get("trace_id"))

            if existing_trace != trace_id:
                context.run(lambda: bind_contextvars(trace_id=trace_id))

        def runner() -> Any:
            return context.run(func, *args, **kwargs)

        future = self._executor.submit(runner)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._discard)
        return future

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until every tracked future is done; return False on timeout."""

        with self._lock:
            futures = list(self._pending)
        if not futures:
            return True
        _, not_done = wait(futures, timeout=timeout)
        return not not_done

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)


_tasks = BackgroundTasks()


def get_background_tasks() -> BackgroundTasks:
    return _tasks


def run_async(
    func: Callable[..., Any],
    /,
    *args: Any,
    trace_id: str | None = None,
    **kwargs: Any,
) -> Future:
    """Submit *func* to the shared thread pool and return a Future."""

    return _tasks.submit(func, *args, trace_id=trace_id, **kwargs)


class DeferredTask:
    """Handle for work a handler asked to run after its reply was sent.

    ``schedule`` is idempotent: the work is submitted at most once no matter
    how many times the transport signals that the response was closed.
    """

    def __init__(
        self,
        work: Callable[[], Any],
        *,
        trace_id: str | None = None,
        tasks: BackgroundTasks | None = None,
    ) -> None:
        self._work = work
        self._trace_id = trace_id
        self._tasks = tasks
        self._lock = threading.Lock()
        self._future: Future | None = None

    @property
    def scheduled(self) -> bool:
        return self._future is not None

    @property
    def future(self) -> Future | None:
        return self._future

    def schedule(self) -> Future:
        with self._lock:
            if self._future is None:
                tasks = self._tasks or get_background_tasks()
                self._future = tasks.submit(self._run, trace_id=self._trace_id)
            return self._future

    def _run(self) -> Any:
        try:
            return self._work()
        except Exception:
            logger.exception("deferred_work_failed")
            return None
