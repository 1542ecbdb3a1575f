from __future__ import annotations

from typing import Dict, List, Sequence

from .types import Batch, LineKind, ParsedDocument, TranslationResult


def _block_lines(block: str) -> List[str]:
    # 译文内部的空行会被误认为字幕分隔符，这里统一去掉
    return [line.strip() for line in block.split("\n") if line.strip()]


def _text_line_endings(document: ParsedDocument) -> Dict[int, List[str]]:
    endings: Dict[int, List[str]] = {}
    for line in document.lines:
        if line.kind is LineKind.TEXT and line.caption_index is not None:
            endings.setdefault(line.caption_index, []).append(line.line_ending)
    return endings


def reassemble(
    document: ParsedDocument,
    batches: Sequence[Batch],
    results: Sequence[TranslationResult],
) -> str:
    """
    按原始文档顺序重组字幕文本。

    - 序号、时间轴与空行原样输出；
    - 每条字幕的第一行文本位置替换为对应 batch 结果中的译文（或回退的原文），
      该字幕其余的原文行被跳过；
    - 输出的文本行沿用原文文本行的换行风格：最后一行用原文最后一行的行尾，
      其余各行用原文第一行的行尾。

    results 必须按 batch.index 排列，与 batches 一一对应。
    """
    if len(batches) != len(results):
        raise ValueError(
            f"Expected {len(batches)} translation results, got {len(results)}"
        )

    translated: Dict[int, str] = {}
    for batch, result in zip(batches, results):
        if result.batch_index != batch.index or len(result.blocks) != len(batch.members):
            raise ValueError(f"Translation result does not match batch {batch.index}")
        for caption, block in zip(batch.members, result.blocks):
            translated[caption.index] = block

    endings = _text_line_endings(document)
    out: List[str] = []
    emitted: set[int] = set()
    for line in document.lines:
        if line.kind is not LineKind.TEXT:
            out.append(line.raw)
            continue
        assert line.caption_index is not None
        if line.caption_index in emitted:
            continue
        emitted.add(line.caption_index)
        caption = document.captions[line.caption_index]
        block = translated.get(caption.index, caption.text)
        lines = _block_lines(block) or list(caption.text_lines)
        caption_endings = endings[line.caption_index]
        body_ending, last_ending = caption_endings[0], caption_endings[-1]
        out.extend(text + body_ending for text in lines[:-1])
        out.append(lines[-1] + last_ending)
    return "\n".join(out)
