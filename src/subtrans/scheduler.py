from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from subtrans.subtitles import Batch, BatchStatus, TranslationResult
from subtrans.translate.translator import TranslationEngine

from .retry import RetryExecutor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    completed: int
    total: int
    batch_index: int
    status: BatchStatus


ProgressCallback = Callable[[ProgressEvent], None]


class ConcurrencyScheduler:
    """
    在有限并发下把所有 batch 分发给 RetryExecutor。

    - 固定大小的线程池 + BoundedSemaphore 令牌池，同一时刻最多 concurrency 个后端调用；
    - 结果按 batch.index 存放，完成顺序与最终输出无关；
    - 单个 batch 失败（包括引擎的意外异常）只会回退该 batch，不会取消其它 batch。

    progress 回调在调用 run() 的线程上执行，每完成一个 batch 调用一次。
    """

    def __init__(
        self,
        engine: TranslationEngine,
        concurrency: int = 2,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        progress: Optional[ProgressCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.concurrency = concurrency
        self.progress = progress
        self._tokens = threading.BoundedSemaphore(concurrency)
        self.executor = RetryExecutor(
            engine,
            max_retries=max_retries,
            retry_delay=retry_delay,
            limiter=self._tokens,
            sleep=sleep,
        )

    def _report(self, event: ProgressEvent) -> None:
        if self.progress is None:
            return
        try:
            self.progress(event)
        except Exception:
            # 进度回调只是旁路通知，失败不影响翻译
            logger.exception("progress callback failed for batch %d", event.batch_index)

    def run(self, batches: Sequence[Batch]) -> List[TranslationResult]:
        total = len(batches)
        results: List[Optional[TranslationResult]] = [None] * total
        if total == 0:
            return []

        worker_count = min(self.concurrency, total)
        completed = 0
        with ThreadPoolExecutor(max_workers=worker_count) as pool:
            future_to_pos = {
                pool.submit(self.executor.run, batch): pos for pos, batch in enumerate(batches)
            }
            for future in as_completed(future_to_pos):
                pos = future_to_pos[future]
                try:
                    result = future.result()
                except Exception as exc:
                    # 引擎抛出非 BackendError 的异常时同样只回退该 batch
                    batch = batches[pos]
                    logger.exception("batch %d 翻译时出现意外错误，保留原文", batch.index)
                    result = TranslationResult(
                        batch_index=batch.index,
                        status=BatchStatus.FALLBACK_ORIGINAL,
                        blocks=tuple(batch.blocks),
                        error=f"{type(exc).__name__}: {exc}",
                    )
                results[pos] = result
                completed += 1
                self._report(
                    ProgressEvent(
                        completed=completed,
                        total=total,
                        batch_index=result.batch_index,
                        status=result.status,
                    )
                )

        missing = [pos for pos, result in enumerate(results) if result is None]
        if missing:
            raise RuntimeError(f"Batches without a terminal result: {missing}")
        return [result for result in results if result is not None]
