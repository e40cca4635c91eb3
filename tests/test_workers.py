"""Tests for the worker pool and the lock-guarded map."""

import threading

import pytest

from class_prune.workers import ConcurrentMap, PoolTimeoutError, run_in_pool


class TestConcurrentMap:
    def test_put_returns_previous(self):
        m = ConcurrentMap()
        assert m.put("a", 1) is None
        assert m.put("a", 2) == 1
        assert m.get("a") == 2

    def test_setdefault_keeps_first(self):
        m = ConcurrentMap()
        assert m.setdefault("a", []) == []
        m.get("a").append(1)
        assert m.setdefault("a", ["other"]) == [1]

    def test_freeze_blocks_writes(self):
        m = ConcurrentMap()
        m.put("a", 1)
        m.freeze()
        assert m.frozen
        with pytest.raises(RuntimeError):
            m.put("b", 2)
        with pytest.raises(RuntimeError):
            m.setdefault("c", 3)
        assert m.snapshot() == {"a": 1}

    def test_clear_unfreezes(self):
        m = ConcurrentMap()
        m.put("a", 1)
        m.freeze()
        m.clear()
        assert len(m) == 0
        m.put("b", 2)
        assert "b" in m
        assert list(m) == ["b"]

    def test_concurrent_puts(self):
        m = ConcurrentMap()
        run_in_pool(lambda i: m.put(i, i * i), range(500), workers=8, timeout=10)
        assert len(m) == 500
        assert m.get(21) == 441


class TestRunInPool:
    def test_empty_input(self):
        assert run_in_pool(lambda _: None, [], workers=4, timeout=1) == 0

    def test_runs_every_item(self):
        seen = []
        lock = threading.Lock()

        def record(item):
            with lock:
                seen.append(item)

        assert run_in_pool(record, range(20), workers=4, timeout=10) == 20
        assert sorted(seen) == list(range(20))

    def test_task_exception_propagates(self):
        def explode(item):
            if item == 3:
                raise KeyError("boom")

        with pytest.raises(KeyError):
            run_in_pool(explode, range(5), workers=2, timeout=10)

    def test_timeout_raises(self):
        release = threading.Event()
        try:
            with pytest.raises(PoolTimeoutError) as exc_info:
                run_in_pool(lambda _: release.wait(5), [1, 2], workers=2, timeout=0.1, stage="scan")
        finally:
            release.set()
        assert exc_info.value.stage == "scan"
        assert exc_info.value.pending == 2
        assert "partial data" in str(exc_info.value)
