"""Serialized render queue with supersession.

Interactive controls fire parameter changes faster than a render finishes.
RenderScheduler runs renders one at a time on a single worker thread; every
submission bumps a generation counter, and a running job that sees a newer
generation aborts at its next cancellation point. Only the newest completed
result is kept.
"""

import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

import structlog

from glasswrap.exceptions import RenderCancelledError

logger = structlog.get_logger(__name__)


class CancelToken:
    """Callable that reports whether its generation has been superseded.

    Attributes:
        generation: Generation the job was submitted as
    """

    def __init__(self, scheduler: "RenderScheduler", generation: int) -> None:
        self._scheduler = scheduler
        self.generation = generation

    def __call__(self) -> bool:
        return self._scheduler.generation != self.generation


class RenderScheduler:
    """Runs render jobs serially, discarding superseded ones.

    A job is any callable accepting a ``cancel_check`` keyword argument; it
    should call ``cancel_check()`` between units of work and raise
    RenderCancelledError when it returns True (the rasterizer does this
    between strips).

    Example:
        scheduler = RenderScheduler()
        future = scheduler.submit(compositor.compose, glass, mask, params)
        image = future.result()  # None if a newer submission superseded it
        scheduler.shutdown()
    """

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="glasswrap-render")
        self._lock = threading.Lock()
        self._generation = 0
        self._latest: Any = None

    @property
    def generation(self) -> int:
        """Generation of the newest submission."""
        with self._lock:
            return self._generation

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> "Future[Any]":
        """Queue a render, superseding everything submitted before it.

        Args:
            fn: Render callable; receives ``cancel_check`` as a keyword argument
            *args: Positional arguments for ``fn``
            **kwargs: Keyword arguments for ``fn``

        Returns:
            Future resolving to the render result, or None if superseded
        """
        with self._lock:
            self._generation += 1
            token = CancelToken(self, self._generation)
        return self._executor.submit(self._run, token, fn, args, kwargs)

    def _run(
        self,
        token: CancelToken,
        fn: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> Any:
        # Skip jobs that were superseded while queued.
        if token():
            logger.debug("Render skipped", generation=token.generation)
            return None
        try:
            result = fn(*args, cancel_check=token, **kwargs)
        except RenderCancelledError:
            logger.debug("Render cancelled", generation=token.generation)
            return None

        with self._lock:
            if token.generation != self._generation:
                # Finished, but a newer render is already queued.
                return None
            self._latest = result
        return result

    def latest(self) -> Any:
        """Newest completed, non-superseded result (None before the first)."""
        with self._lock:
            return self._latest

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker; pending superseded jobs are dropped."""
        with self._lock:
            self._generation += 1
        self._executor.shutdown(wait=wait, cancel_futures=True)

    def __enter__(self) -> "RenderScheduler":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
