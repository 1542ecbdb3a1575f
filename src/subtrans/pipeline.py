from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .batcher import make_batches
from .config import SubTransConfig
from .errors import InputError
from .scheduler import ConcurrencyScheduler, ProgressCallback
from .subtitles import Batch, BatchStatus, Caption, ParsedDocument, TranslationResult
from .subtitles import parse_document, reassemble
from .translate.factory import get_translation_engine
from .translate.translator import TranslationEngine

logger = logging.getLogger(__name__)


@dataclass
class PipelineReport:
    """
    一次翻译运行的输出与统计。
    """

    text: str
    caption_count: int = 0
    batch_count: int = 0
    fallback_batches: List[int] = field(default_factory=list)

    @property
    def succeeded_count(self) -> int:
        return self.batch_count - len(self.fallback_batches)

    def stats(self) -> dict[str, object]:
        return {
            "captions": self.caption_count,
            "batches": self.batch_count,
            "succeeded": self.succeeded_count,
            "fallback": len(self.fallback_batches),
            "fallback_batches": list(self.fallback_batches),
        }


class SubTransPipeline:
    """
    字幕翻译主 Pipeline：解析 -> 分批 -> 并发翻译（含重试与回退）-> 重组。

    翻译引擎在构造时确定；未传入时根据 config.engine 创建。
    """

    def __init__(
        self,
        config: SubTransConfig,
        engine: Optional[TranslationEngine] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.config = config
        self.engine = engine if engine is not None else get_translation_engine(config)
        self.progress = progress

    def run_parse(self, text: str) -> ParsedDocument:
        return parse_document(text)

    def run_batching(self, captions: List[Caption]) -> List[Batch]:
        return make_batches(captions, self.config.max_block_size)

    def run_translation(self, batches: List[Batch]) -> List[TranslationResult]:
        scheduler = ConcurrencyScheduler(
            self.engine,
            concurrency=self.config.concurrency,
            max_retries=self.config.max_retries,
            retry_delay=self.config.retry_delay,
            progress=self.progress,
        )
        return scheduler.run(batches)

    def translate_text(self, text: str) -> PipelineReport:
        document = self.run_parse(text)
        batches = self.run_batching(document.captions)
        logger.info(
            "共 %d 条字幕，分为 %d 个 batch（每批最多 %d 条，并发 %d）",
            len(document.captions),
            len(batches),
            self.config.max_block_size,
            self.config.concurrency,
        )
        results = self.run_translation(batches)
        output = reassemble(document, batches, results)

        fallback = [r.batch_index for r in results if r.status is BatchStatus.FALLBACK_ORIGINAL]
        if fallback:
            logger.warning("%d 个 batch 翻译失败，已保留原文: %s", len(fallback), fallback)
        return PipelineReport(
            text=output,
            caption_count=len(document.captions),
            batch_count=len(batches),
            fallback_batches=fallback,
        )

    def translate_file(self, input_path: str | Path, output_path: str | Path) -> PipelineReport:
        """
        读取 UTF-8 字幕文件，翻译后写入 output_path。
        """
        in_path = Path(input_path).expanduser()
        if not in_path.is_file():
            raise InputError(f"未找到字幕文件: {in_path}")
        try:
            text = in_path.read_bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InputError(f"字幕文件不是有效的 UTF-8 文本: {in_path}") from exc
        if not text.strip():
            raise InputError(f"字幕文件为空: {in_path}")

        report = self.translate_text(text)
        out_path = Path(output_path).expanduser().resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        # 按字节写出，保留原文件的换行风格
        out_path.write_bytes(report.text.encode("utf-8"))
        return report
