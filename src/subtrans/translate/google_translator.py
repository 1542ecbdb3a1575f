from __future__ import annotations

from typing import List, Sequence

from subtrans.errors import BackendError
from subtrans.subtitles import BLOCK_SEPARATOR

from .sanitizers import Sanitizer
from .translator import HttpTranslationEngine, split_blocks


class GoogleTranslator(HttpTranslationEngine):
    """
    使用 Google 翻译兼容接口的翻译引擎。

    默认使用官方接口 https://translate.googleapis.com，
    也可以通过 SUBTRANS_ENDPOINT 指向自建代理或反向代理服务。

    一个 batch 的字幕块以空行拼接后作为单个请求发送，
    返回的分段拼接后再按空行拆分。
    """

    name = "google"

    def __init__(
        self,
        base_url: str = "https://translate.googleapis.com",
        source_lang: str = "auto",
        target_lang: str = "zh-TW",
        timeout: float = 30.0,
        sanitizers: Sequence[Sanitizer] = (),
    ) -> None:
        super().__init__(timeout=timeout, sanitizers=sanitizers)
        self.base_url = base_url.rstrip("/")
        self.source_lang = source_lang or "auto"
        self.target_lang = target_lang

    def _endpoint(self) -> str:
        # 采用与 translate.googleapis.com 兼容的路径
        return f"{self.base_url}/translate_a/single"

    def translate(self, blocks: Sequence[str]) -> List[str]:
        if not blocks:
            return []
        params = {
            "client": "gtx",
            "sl": self.source_lang,
            "tl": self.target_lang,
            "dt": "t",
            "q": BLOCK_SEPARATOR.join(blocks),
        }
        headers = {
            "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) subtrans/0.1.0",
        }
        data = self._request("GET", self._endpoint(), params=params, headers=headers)

        translated_parts: list[str] = []
        if isinstance(data, list) and data and isinstance(data[0], list):
            for part in data[0]:
                if isinstance(part, list) and part and part[0] is not None:
                    translated_parts.append(str(part[0]))
        if not translated_parts:
            raise BackendError("google response contains no translated segments")
        return split_blocks(self.clean("".join(translated_parts)), len(blocks))
