import threading
import time
from typing import List, Sequence

from subtrans.batcher import make_batches
from subtrans.scheduler import ConcurrencyScheduler
from subtrans.subtitles import BatchStatus, Caption
from subtrans.translate.translator import TranslationEngine

from fakes import FailingEngine, UpperEngine


def _batches(n, size=1):
    captions = [Caption(index=i, text_lines=(f"caption {i}",)) for i in range(n)]
    return make_batches(captions, max_block_size=size)


class CountingEngine(TranslationEngine):
    def __init__(self, delay: float) -> None:
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.calls = 0
        self._lock = threading.Lock()

    def translate(self, blocks: Sequence[str]) -> List[str]:
        with self._lock:
            self.active += 1
            self.calls += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            return [b.upper() for b in blocks]
        finally:
            with self._lock:
                self.active -= 1


class ReverseOrderEngine(TranslationEngine):
    """batch i 必须等 batch i+1 完成后才返回，从而强制逆序完成。"""

    def __init__(self, n: int) -> None:
        self.done = [threading.Event() for _ in range(n)]

    def translate(self, blocks: Sequence[str]) -> List[str]:
        i = int(blocks[0].rsplit(" ", 1)[1])
        if i + 1 < len(self.done):
            assert self.done[i + 1].wait(timeout=5)
        self.done[i].set()
        return [b.upper() for b in blocks]


def test_bounded_concurrency():
    engine = CountingEngine(delay=0.05)
    scheduler = ConcurrencyScheduler(engine, concurrency=2, retry_delay=0)

    results = scheduler.run(_batches(3))

    assert engine.calls == 3
    assert engine.max_active <= 2
    assert all(r.succeeded for r in results)


def test_results_indexed_by_position_despite_reverse_completion():
    events = []
    engine = ReverseOrderEngine(3)
    scheduler = ConcurrencyScheduler(engine, concurrency=3, retry_delay=0, progress=events.append)

    results = scheduler.run(_batches(3))

    assert [e.batch_index for e in events] == [2, 1, 0]
    assert [e.completed for e in events] == [1, 2, 3]
    assert all(e.total == 3 for e in events)
    assert [r.batch_index for r in results] == [0, 1, 2]
    assert [r.blocks for r in results] == [("CAPTION 0",), ("CAPTION 1",), ("CAPTION 2",)]


def test_each_failing_batch_is_tried_max_retries_times():
    engine = FailingEngine()
    scheduler = ConcurrencyScheduler(engine, concurrency=2, max_retries=3, retry_delay=0)

    results = scheduler.run(_batches(4, size=2))

    assert len(engine.calls) == 6
    per_batch = {}
    for call in engine.calls:
        per_batch[call] = per_batch.get(call, 0) + 1
    assert sorted(per_batch.values()) == [3, 3]
    assert all(r.status is BatchStatus.FALLBACK_ORIGINAL for r in results)


def test_progress_callback_errors_do_not_break_run():
    def broken(event):
        raise RuntimeError("ui went away")

    scheduler = ConcurrencyScheduler(UpperEngine(), concurrency=2, retry_delay=0, progress=broken)

    results = scheduler.run(_batches(2))

    assert all(r.succeeded for r in results)


def test_empty_run():
    assert ConcurrencyScheduler(UpperEngine()).run([]) == []


class BuggyEngine(TranslationEngine):
    def translate(self, blocks: Sequence[str]) -> List[str]:
        if "caption 1" in blocks:
            raise KeyError("unexpected payload shape")
        return [block.upper() for block in blocks]


def test_unexpected_engine_error_only_falls_back_its_batch():
    scheduler = ConcurrencyScheduler(BuggyEngine(), concurrency=2, max_retries=3, retry_delay=0)

    results = scheduler.run(_batches(3))

    assert [r.status for r in results] == [
        BatchStatus.SUCCEEDED,
        BatchStatus.FALLBACK_ORIGINAL,
        BatchStatus.SUCCEEDED,
    ]
    assert results[1].blocks == ("caption 1",)
    assert "KeyError" in results[1].error
    assert results[0].blocks == ("CAPTION 0",)
