from __future__ import annotations

import contextlib
import logging
import time
from typing import Callable, ContextManager, List, Optional

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from subtrans.errors import BackendError
from subtrans.subtitles import Batch, BatchStatus, TranslationResult
from subtrans.translate.translator import TranslationEngine

logger = logging.getLogger(__name__)


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome is not None else None
    logger.warning(
        "翻译尝试 %d 失败，%.1fs 后重试: %s",
        state.attempt_number,
        state.next_action.sleep if state.next_action is not None else 0.0,
        exc,
    )


class RetryExecutor:
    """
    对单个 batch 执行带重试的翻译调用。

    - 最多尝试 max_retries 次，两次尝试之间固定等待 retry_delay 秒；
    - 每次尝试都校验译文块数与非空，不满足视为失败；
    - 全部失败后回退为原文（FALLBACK_ORIGINAL），不会抛出异常。

    limiter 为可选的并发令牌（上下文管理器），仅在后端调用期间持有，
    重试等待期间已释放。
    """

    def __init__(
        self,
        engine: TranslationEngine,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        limiter: Optional[ContextManager[object]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.engine = engine
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.limiter = limiter
        self._sleep = sleep

    def _attempt(self, batch: Batch) -> List[str]:
        with self.limiter if self.limiter is not None else contextlib.nullcontext():
            translated = self.engine.translate(batch.blocks)
        if len(translated) != len(batch.members):
            raise BackendError(
                f"Backend returned {len(translated)} blocks, expected {len(batch.members)}"
            )
        if any(not block.strip() for block in translated):
            raise BackendError("Backend returned an empty block")
        return list(translated)

    def run(self, batch: Batch) -> TranslationResult:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type(BackendError),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        attempts = 0
        try:
            for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    translated = self._attempt(batch)
        except BackendError as exc:
            first = batch.members[0].sequence_line if batch.members else None
            logger.warning(
                "batch %d（起始序号 %s）翻译失败 %d 次，保留原文: %s",
                batch.index,
                (first or "?").strip(),
                attempts,
                exc,
            )
            return TranslationResult(
                batch_index=batch.index,
                status=BatchStatus.FALLBACK_ORIGINAL,
                blocks=tuple(batch.blocks),
                attempts=attempts,
                error=str(exc),
            )

        logger.debug(
            "batch %d 翻译完成\n原始文本:\n%s\n翻译结果:\n%s",
            batch.index,
            batch.joined_text,
            "\n\n".join(translated),
        )
        return TranslationResult(
            batch_index=batch.index,
            status=BatchStatus.SUCCEEDED,
            blocks=tuple(translated),
            attempts=attempts,
        )
