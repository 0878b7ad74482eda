"""
Background Worker - runs slow computations off the control path.

Territory estimation and scoring run on a thread pool. Finished tasks are
posted to a single queue that only the owning context drains, so results
are applied where every other mutation happens.

Each task kind has a generation counter. Submitting a task of a kind, or
invalidating it, makes every earlier task of that kind stale; stale
results are dropped when collected instead of being applied out of order.
"""

from __future__ import annotations
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from queue import Empty, Queue
from typing import Any, Callable
import logging

from ..config import KIFU_COMPUTE_WORKERS

logger = logging.getLogger(__name__)


@dataclass
class BackgroundResult:
    """Outcome of one background task."""
    kind: str
    generation: int
    args: tuple[Any, ...] = field(default_factory=tuple)
    value: Any = None
    error: Exception | None = None


class BackgroundWorker:
    """
    Thread pool plus a result queue with per-kind supersession.

    `submit`, `invalidate`, `is_current` and `collect` must all be called
    from the owning context; only the pool threads touch the queue's
    producer side.
    """

    def __init__(self, executor: Executor | None = None, max_workers: int = KIFU_COMPUTE_WORKERS):
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="kifu-compute"
        )
        self._results: Queue[BackgroundResult] = Queue()
        self._generations: dict[str, int] = {}
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        """Submitted tasks whose results have not been collected yet."""
        return self._in_flight

    def submit(self, kind: str, fn: Callable[..., Any], *args: Any) -> int:
        """Run `fn(*args)` in the background. Returns the task's generation."""
        generation = self._generations.get(kind, 0) + 1
        self._generations[kind] = generation
        self._in_flight += 1

        future = self._executor.submit(fn, *args)
        future.add_done_callback(lambda f: self._post(kind, generation, args, f))
        logger.debug("Submitted %s task, generation %d", kind, generation)
        return generation

    def _post(self, kind: str, generation: int, args: tuple[Any, ...], future: Future) -> None:
        try:
            result = BackgroundResult(kind, generation, args, value=future.result())
        except Exception as e:
            result = BackgroundResult(kind, generation, args, error=e)
        self._results.put(result)

    def invalidate(self, kind: str | None = None) -> None:
        """Make in-flight tasks of `kind` (or of every kind) stale."""
        kinds = [kind] if kind is not None else list(self._generations)
        for k in kinds:
            self._generations[k] = self._generations.get(k, 0) + 1

    def is_current(self, result: BackgroundResult) -> bool:
        return self._generations.get(result.kind) == result.generation

    def collect(self, wait: bool = False, timeout: float | None = None) -> list[BackgroundResult]:
        """
        Take every finished result off the queue.

        With `wait`, block until all submitted tasks have reported (or a
        single wait exceeds `timeout` seconds).
        """
        results = []
        while True:
            try:
                if wait and self._in_flight > 0:
                    result = self._results.get(timeout=timeout)
                else:
                    result = self._results.get_nowait()
            except Empty:
                break
            self._in_flight -= 1
            results.append(result)
        return results

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
