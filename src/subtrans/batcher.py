from __future__ import annotations

from typing import Iterable, List

from subtrans.subtitles import Batch, Caption


def make_batches(captions: Iterable[Caption], max_block_size: int) -> List[Batch]:
    """
    按文档顺序把字幕分组为 batch，每组最多 max_block_size 条。

    计数达到上限或输入结束时立即输出当前组，组之间不会重排或合并。
    """
    if max_block_size < 1:
        raise ValueError("max_block_size must be >= 1")

    batches: List[Batch] = []
    current: List[Caption] = []
    for caption in captions:
        current.append(caption)
        if len(current) >= max_block_size:
            batches.append(Batch(index=len(batches), members=tuple(current)))
            current = []
    if current:
        batches.append(Batch(index=len(batches), members=tuple(current)))
    return batches
