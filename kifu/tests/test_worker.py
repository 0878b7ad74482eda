"""
Tests for the background worker.
"""

import threading

from ..session.worker import BackgroundWorker


def add(a, b):
    return a + b


def fail():
    raise ValueError("broken task")


class TestBackgroundWorker:
    """Tests for submission, supersession and collection."""

    def test_result_is_collected(self, worker):
        """A finished task's value is delivered with its arguments."""
        generation = worker.submit("sum", add, 2, 3)

        results = worker.collect(wait=True, timeout=5)

        assert len(results) == 1
        assert results[0].value == 5
        assert results[0].args == (2, 3)
        assert results[0].generation == generation
        assert worker.is_current(results[0])
        assert worker.in_flight == 0

    def test_newer_submission_supersedes(self, worker):
        """Only the latest task of a kind is current."""
        worker.submit("sum", add, 1, 1)
        worker.submit("sum", add, 2, 2)

        results = worker.collect(wait=True, timeout=5)
        current = [r for r in results if worker.is_current(r)]

        assert len(results) == 2
        assert [r.value for r in current] == [4]

    def test_kinds_are_independent(self, worker):
        """Submitting one kind does not supersede another."""
        worker.submit("sum", add, 1, 1)
        worker.submit("other", add, 2, 2)

        results = worker.collect(wait=True, timeout=5)

        assert all(worker.is_current(r) for r in results)

    def test_invalidate(self, worker):
        """Invalidation makes in-flight tasks stale."""
        worker.submit("sum", add, 1, 1)
        worker.invalidate()

        results = worker.collect(wait=True, timeout=5)

        assert not worker.is_current(results[0])

    def test_error_is_captured(self, worker):
        """A failing task reports its exception instead of a value."""
        worker.submit("boom", fail)

        result = worker.collect(wait=True, timeout=5)[0]

        assert isinstance(result.error, ValueError)
        assert result.value is None

    def test_collect_without_wait(self, worker):
        """Without waiting, unfinished tasks are left for later."""
        release = threading.Event()
        worker.submit("slow", release.wait, 5)

        assert worker.collect() == []
        assert worker.in_flight == 1

        release.set()
        results = worker.collect(wait=True, timeout=5)
        assert results[0].value is True

    def test_external_executor(self):
        """An injected executor is used as is."""
        from concurrent.futures import ThreadPoolExecutor

        with ThreadPoolExecutor(max_workers=2) as executor:
            worker = BackgroundWorker(executor=executor)
            worker.submit("sum", add, 20, 22)

            assert worker.collect(wait=True, timeout=5)[0].value == 42
