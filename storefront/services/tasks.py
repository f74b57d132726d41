# storefront/services/tasks.py
# Очередь пост-коммитных задач. Транзакция сначала коммитится,
# затем задача уходит в пул потоков и выполняется отдельно от запроса.
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class PostCommitQueue:
    """Пул фоновых задач; inline=True выполняет задачи сразу (тесты)."""

    def __init__(self, workers: int = 2, inline: bool = False):
        self.workers = workers
        self.inline = inline
        self._executor: Optional[ThreadPoolExecutor] = None

    def start(self) -> None:
        if self.inline or self._executor is not None:
            return
        self._executor = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="post-commit")
        logger.info(f"Post-commit queue started with {self.workers} workers")

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is None:
            return
        self._executor.shutdown(wait=wait)
        self._executor = None
        logger.info("Post-commit queue stopped")

    def enqueue(self, fn: Callable, *args, **kwargs) -> Optional[Future]:
        name = getattr(fn, "__name__", repr(fn))
        if self.inline:
            try:
                fn(*args, **kwargs)
            except Exception as e:
                logger.error(f"Post-commit task {name} failed: {e}", exc_info=True)
            return None

        if self._executor is None:
            self.start()
        future = self._executor.submit(fn, *args, **kwargs)
        future.add_done_callback(lambda f: self._log_failure(name, f))
        return future

    @staticmethod
    def _log_failure(name: str, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(f"Post-commit task {name} failed: {exc}", exc_info=exc)
