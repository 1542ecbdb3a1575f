from __future__ import annotations

import re
from typing import List, Optional

from .types import Caption, DocumentLine, LineKind, ParsedDocument

_SEQUENCE_RE = re.compile(r"^\d+$")
TIMECODE_MARKER = "-->"


def _clean(line: str) -> str:
    return line.strip().lstrip("\ufeff").strip()


def classify_line(line: str) -> LineKind:
    """
    判断单行类型（先去除首尾空白与 BOM）。

    - 空行 -> BLANK
    - 纯数字 -> STRUCTURAL（序号）
    - 含有 "-->" -> STRUCTURAL（时间轴）
    - 其它一律视为字幕文本，不识别的行也不会被丢弃
    """
    stripped = _clean(line)
    if not stripped:
        return LineKind.BLANK
    if _SEQUENCE_RE.match(stripped) or TIMECODE_MARKER in stripped:
        return LineKind.STRUCTURAL
    return LineKind.TEXT


def parse_document(text: str) -> ParsedDocument:
    """
    将完整的字幕文本拆分为逐行结构记录与字幕列表。

    按 "\\n" 切分，结构行与空行保留原始内容（包括 "\\r"），
    以便重组时逐字节输出。空行或结构行都会结束当前字幕的文本收集；
    文件末尾没有空行时，最后一条字幕同样会被收集。
    """
    document = ParsedDocument()
    current: List[str] = []
    current_index: Optional[int] = None
    last_sequence: Optional[str] = None
    last_timecode: Optional[str] = None

    def flush() -> None:
        nonlocal current, current_index, last_sequence, last_timecode
        if current_index is not None and current:
            document.captions.append(
                Caption(
                    index=current_index,
                    text_lines=tuple(current),
                    sequence_line=last_sequence,
                    timecode_line=last_timecode,
                )
            )
            last_sequence = None
            last_timecode = None
        current = []
        current_index = None

    for raw in text.split("\n"):
        kind = classify_line(raw)
        if kind is LineKind.TEXT:
            if current_index is None:
                current_index = len(document.captions)
            current.append(_clean(raw))
            document.lines.append(DocumentLine(kind, raw, current_index))
            continue

        flush()
        if kind is LineKind.STRUCTURAL:
            if TIMECODE_MARKER in raw:
                last_timecode = raw
            else:
                last_sequence = raw
        document.lines.append(DocumentLine(kind, raw))

    flush()
    return document
