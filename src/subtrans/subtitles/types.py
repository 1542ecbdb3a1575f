from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

BLOCK_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class Caption:
    """
    单条字幕，对应 SRT 中的一个时间轴块。

    sequence_line / timecode_line 按原样保存，只用于展示与统计，
    永远不会发送给翻译后端；只有 text_lines 参与翻译。
    """

    index: int
    text_lines: Tuple[str, ...]
    sequence_line: Optional[str] = None
    timecode_line: Optional[str] = None

    @property
    def text(self) -> str:
        return "\n".join(self.text_lines)


class LineKind(str, Enum):
    STRUCTURAL = "structural"
    BLANK = "blank"
    TEXT = "text"


@dataclass(frozen=True)
class DocumentLine:
    kind: LineKind
    raw: str
    caption_index: Optional[int] = None

    @property
    def line_ending(self) -> str:
        # 按 "\n" 切分后，CRLF 文件的每行都带着结尾的 "\r"
        return "\r" if self.raw.endswith("\r") else ""


@dataclass
class ParsedDocument:
    """
    解析结果：逐行的结构记录 + 字幕列表。

    lines 与输入逐行对应，用于在重组时原样输出序号、时间轴与空行。
    """

    lines: List[DocumentLine] = field(default_factory=list)
    captions: List[Caption] = field(default_factory=list)

    @property
    def structural_count(self) -> int:
        return sum(1 for line in self.lines if line.kind is LineKind.STRUCTURAL)


@dataclass(frozen=True)
class Batch:
    """
    一组连续字幕，对应一次后端翻译调用。
    """

    index: int
    members: Tuple[Caption, ...]

    @property
    def blocks(self) -> List[str]:
        return [caption.text for caption in self.members]

    @property
    def joined_text(self) -> str:
        return BLOCK_SEPARATOR.join(self.blocks)

    def __len__(self) -> int:
        return len(self.members)


class BatchStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FALLBACK_ORIGINAL = "fallback_original"


@dataclass(frozen=True)
class TranslationResult:
    """
    单个 batch 的最终结果。

    blocks 与 batch.members 一一对应：成功时为译文，回退时为原文。
    """

    batch_index: int
    status: BatchStatus
    blocks: Tuple[str, ...]
    attempts: int = 0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is BatchStatus.SUCCEEDED
