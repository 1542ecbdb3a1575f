from __future__ import annotations

"""
Web 层与核心 Pipeline 之间的集成点。

负责上传内容的读取与校验、按请求构造配置，以及调用 Pipeline。
"""

import os
from dataclasses import replace
from typing import BinaryIO, Optional

from subtrans.config import SubTransConfig
from subtrans.errors import InputError
from subtrans.pipeline import PipelineReport, SubTransPipeline
from subtrans.scheduler import ProgressCallback
from subtrans.translate.translator import TranslationEngine

ALLOWED_SUFFIXES = {".srt"}


class UploadTooLarge(InputError):
    """上传文件超过大小限制。"""


def max_upload_bytes() -> int:
    """
    上传大小上限，通过 SUBTRANS_WEB_MAX_UPLOAD_MB 配置（默认 10 MB）。
    """
    max_mb_env = os.getenv("SUBTRANS_WEB_MAX_UPLOAD_MB", "10")
    try:
        max_mb = int(max_mb_env)
    except ValueError:
        max_mb = 10
    return max_mb * 1024 * 1024


def read_upload_text(filename: Optional[str], stream: BinaryIO) -> str:
    """
    读取上传的字幕文件并解码为文本。

    - 未提供文件、扩展名不是 .srt、内容为空或不是 UTF-8 时抛出 InputError；
    - 超过大小限制时抛出 UploadTooLarge。
    """
    if not filename:
        raise InputError("未提供檔案")
    suffix = os.path.splitext(filename)[1].lower()
    if suffix not in ALLOWED_SUFFIXES:
        raise InputError("請上傳 .srt 格式的檔案")

    limit = max_upload_bytes()
    chunks: list[bytes] = []
    copied = 0
    chunk_size = 1024 * 1024
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        copied += len(chunk)
        if copied > limit:
            raise UploadTooLarge(f"上传文件过大，超过限制 {limit // (1024 * 1024)} MB。")
        chunks.append(chunk)

    try:
        text = b"".join(chunks).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InputError("字幕文件不是有效的 UTF-8 文本") from exc
    if not text.strip():
        raise InputError("字幕文件为空")
    return text


def config_for_request(base: SubTransConfig, target_lang: str | None) -> SubTransConfig:
    target = (target_lang or "").strip()
    if not target:
        return base
    return replace(base, target_lang=target)


def run_translation_for_web(
    text: str,
    config: SubTransConfig,
    engine: Optional[TranslationEngine] = None,
    progress: Optional[ProgressCallback] = None,
) -> PipelineReport:
    """
    Web 入口的高层封装，每个请求使用独立的 Pipeline 实例。
    """
    pipeline = SubTransPipeline(config, engine=engine, progress=progress)
    return pipeline.translate_text(text)
