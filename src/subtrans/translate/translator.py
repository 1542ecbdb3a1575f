from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import requests

from subtrans.errors import BackendError
from subtrans.subtitles import BLOCK_SEPARATOR

from .sanitizers import Sanitizer, apply_sanitizers


class TranslationEngine(ABC):
    """
    翻译引擎抽象接口。

    所有具体实现（Ollama / Google / LLM）都遵循同一契约：
    输入若干文本块，返回数量完全一致的译文块；否则抛出 BackendError。
    源语言、目标语言与模型等参数在构造时确定。
    """

    name: str = "engine"

    @abstractmethod
    def translate(self, blocks: Sequence[str]) -> List[str]:
        """
        将 blocks 逐块翻译为目标语言，返回与 blocks 一一对应的译文列表。
        """


_LANGUAGE_NAMES: Dict[str, str] = {
    "auto": "auto",
    "ar": "Arabic (ar)",
    "de": "German (de)",
    "en": "English (en)",
    "es": "Spanish (es)",
    "fr": "French (fr)",
    "hi": "Hindi (hi)",
    "id": "Indonesian (id)",
    "it": "Italian (it)",
    "ja": "Japanese (ja)",
    "ko": "Korean (ko)",
    "nl": "Dutch; Flemish (nl)",
    "pl": "Polish (pl)",
    "pt": "Portuguese (pt)",
    "ru": "Russian (ru)",
    "th": "Thai (th)",
    "tr": "Turkish (tr)",
    "uk": "Ukrainian (uk)",
    "vi": "Vietnamese (vi)",
    "zh": "Chinese (zh)",
    "zh-cn": "Simplified Chinese (zh-CN)",
    "zh-tw": "Traditional Chinese (zh-TW)",
}


def describe_language(code: str) -> str:
    """
    将语言代码转换为便于模型理解的描述，未知代码原样返回。
    """
    if not code:
        return "auto"
    raw = code.strip()
    return _LANGUAGE_NAMES.get(raw.lower().replace("_", "-"), raw)


def proxies_from_env() -> Optional[Dict[str, str]]:
    http_proxy = os.getenv("SUBTRANS_HTTP_PROXY")
    https_proxy = os.getenv("SUBTRANS_HTTPS_PROXY")
    proxies: Dict[str, str] = {}
    if http_proxy:
        proxies["http"] = http_proxy
    if https_proxy:
        proxies["https"] = https_proxy
    return proxies or None


def split_blocks(text: str, expected: int) -> List[str]:
    """
    按块分隔符拆分单字符串响应，块数与请求不一致时抛出 BackendError。
    """
    parts = [part.strip() for part in text.strip().split(BLOCK_SEPARATOR)]
    parts = [part for part in parts if part]
    if len(parts) != expected:
        raise BackendError(
            f"Backend returned {len(parts)} blocks, expected {expected}"
        )
    return parts


class HttpTranslationEngine(TranslationEngine):
    """
    基于 HTTP 请求的翻译引擎公共部分：超时、代理、响应清理与错误映射。
    """

    def __init__(
        self,
        timeout: float = 30.0,
        sanitizers: Sequence[Sanitizer] = (),
    ) -> None:
        self.timeout = timeout
        self.sanitizers = list(sanitizers)
        self.proxies = proxies_from_env()

    def clean(self, text: str) -> str:
        return apply_sanitizers(text, self.sanitizers)

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """
        发送请求并解析 JSON；网络错误、超时、非 2xx 状态与非法 JSON
        统一转换为 BackendError。
        """
        try:
            if method == "GET":
                resp = requests.get(url, timeout=self.timeout, proxies=self.proxies, **kwargs)
            else:
                resp = requests.post(url, timeout=self.timeout, proxies=self.proxies, **kwargs)
            resp.raise_for_status()
        except requests.Timeout as exc:
            raise BackendError(f"{self.name} request timed out after {self.timeout}s") from exc
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else "?"
            raise BackendError(f"{self.name} returned HTTP {status}") from exc
        except requests.RequestException as exc:
            raise BackendError(f"{self.name} request failed: {exc}") from exc

        try:
            return resp.json()
        except ValueError as exc:
            snippet = resp.text[:500]
            raise BackendError(
                f"{self.name} response is not valid JSON, first 500 chars: {snippet}"
            ) from exc
