"""Best-effort background work whose failures only show up in the log."""
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Optional
import logging

logger = logging.getLogger(__name__)


class DetachedTaskRunner:
    """
    Run units of work without the caller waiting on, or seeing, their outcome.

    A failing task is logged from its done-callback. Submitting after
    shutdown is logged and dropped.
    """

    def __init__(self, executor: Optional[Executor] = None, max_workers: int = 2):
        """
        Initialize the runner.

        Args:
            executor: Executor to submit to (a thread pool is created if None)
            max_workers: Worker threads for the default thread pool
        """
        self.executor = executor or ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="detached-task"
        )

    def spawn(self, fn: Callable[..., Any], *args: Any, description: str = "task", **kwargs: Any) -> Optional[Future]:
        """
        Submit fn(*args, **kwargs) and return immediately.

        Args:
            fn: Callable to run
            description: Label used in log messages
            *args: Positional arguments for fn
            **kwargs: Keyword arguments for fn

        Returns:
            The Future, or None if the task could not be submitted
        """
        try:
            future = self.executor.submit(fn, *args, **kwargs)
        except RuntimeError as e:
            logger.error(f"Could not start {description}: {e}")
            return None

        future.add_done_callback(lambda f: self._log_outcome(f, description))
        return future

    def _log_outcome(self, future: Future, description: str):
        if future.cancelled():
            logger.warning(f"{description} was cancelled")
            return

        error = future.exception()
        if error is not None:
            logger.error(f"{description} failed: {error}", exc_info=error)

    def shutdown(self, wait: bool = True):
        """Stop accepting work, optionally waiting for pending tasks."""
        self.executor.shutdown(wait=wait)
