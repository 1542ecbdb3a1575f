from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional, Tuple

ENGINES = ("ollama", "google", "llm")

DEFAULT_MODELS = {
    "ollama": "qwen2.5:7b",
    "google": "",
    "llm": "",
}

DEFAULT_ENDPOINTS = {
    "ollama": "http://localhost:11434",
    "google": "https://translate.googleapis.com",
    "llm": "",
}


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)) or default)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)) or default)
    except ValueError:
        return default


def parse_sanitizer_names(raw: str | None) -> Optional[Tuple[str, ...]]:
    """
    将逗号分隔的清理策略名称解析为元组；空字符串或 None 表示使用引擎默认值。
    """
    if raw is None:
        return None
    names = tuple(part.strip().lower() for part in raw.split(",") if part.strip())
    return names or None


@dataclass
class SubTransConfig:
    """
    翻译流水线的配置对象。

    所有字段都可以通过 SUBTRANS_* 环境变量提供默认值（见 from_env），
    显式传入的参数优先。
    """

    engine: str = "ollama"
    model: str = DEFAULT_MODELS["ollama"]
    endpoint: str = DEFAULT_ENDPOINTS["ollama"]
    api_key: Optional[str] = None
    source_lang: str = "auto"
    target_lang: str = "zh-TW"
    # 每个 batch 最多包含的字幕条数
    max_block_size: int = 20
    # 每个 batch 的最大尝试次数（包含首次调用）
    max_retries: int = 3
    # 两次尝试之间的固定等待时间（秒）
    retry_delay: float = 1.0
    # 同时进行中的翻译请求数上限
    concurrency: int = 2
    # 单次后端调用的超时时间（秒）
    request_timeout: float = 30.0
    # None 表示使用引擎默认的清理策略
    sanitizers: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        self.engine = self.engine.strip().lower()
        if self.engine not in ENGINES:
            raise ValueError(f"Unknown translation engine: {self.engine}")
        if self.max_block_size < 1:
            raise ValueError("max_block_size must be >= 1")
        if self.max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        if self.retry_delay < 0:
            raise ValueError("retry_delay must be >= 0")
        if self.concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")

    @classmethod
    def from_env(
        cls,
        engine: Optional[str] = None,
        model: Optional[str] = None,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        source_lang: Optional[str] = None,
        target_lang: Optional[str] = None,
        max_block_size: Optional[int] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        concurrency: Optional[int] = None,
        request_timeout: Optional[float] = None,
        sanitizers: Optional[str | Tuple[str, ...]] = None,
    ) -> "SubTransConfig":
        engine_value = (engine or _env_str("SUBTRANS_ENGINE") or "ollama").lower()

        # 模型与地址的默认值取决于引擎
        model_value = model or _env_str("SUBTRANS_MODEL") or DEFAULT_MODELS.get(engine_value, "")
        endpoint_value = (
            endpoint or _env_str("SUBTRANS_ENDPOINT") or DEFAULT_ENDPOINTS.get(engine_value, "")
        )

        if isinstance(sanitizers, str):
            sanitizer_names = parse_sanitizer_names(sanitizers)
        elif sanitizers is not None:
            sanitizer_names = tuple(sanitizers) or None
        else:
            sanitizer_names = parse_sanitizer_names(os.getenv("SUBTRANS_SANITIZERS"))

        return cls(
            engine=engine_value,
            model=model_value,
            endpoint=endpoint_value,
            api_key=api_key or _env_str("SUBTRANS_API_KEY"),
            source_lang=source_lang or _env_str("SUBTRANS_SOURCE_LANG") or "auto",
            target_lang=target_lang or _env_str("SUBTRANS_TARGET_LANG") or "zh-TW",
            max_block_size=(
                max_block_size
                if max_block_size is not None
                else _env_int("SUBTRANS_MAX_BLOCK_SIZE", 20)
            ),
            max_retries=(
                max_retries if max_retries is not None else _env_int("SUBTRANS_MAX_RETRIES", 3)
            ),
            retry_delay=(
                retry_delay if retry_delay is not None else _env_float("SUBTRANS_RETRY_DELAY", 1.0)
            ),
            concurrency=(
                concurrency if concurrency is not None else _env_int("SUBTRANS_CONCURRENCY", 2)
            ),
            request_timeout=(
                request_timeout
                if request_timeout is not None
                else _env_float("SUBTRANS_REQUEST_TIMEOUT", 30.0)
            ),
            sanitizers=sanitizer_names,
        )
