from __future__ import annotations

from typing import List, Sequence

from subtrans.errors import BackendError
from subtrans.subtitles import BLOCK_SEPARATOR

from .sanitizers import Sanitizer
from .translator import HttpTranslationEngine, describe_language, split_blocks

PROMPT_TEMPLATE = (
    "請將以下文本翻譯成{target}，保持原文的格式和標點符號。"
    "如果原文已經是{target}，請直接返回原文。"
    "各段字幕之間以空行分隔，請保持相同的段落數量與順序。"
    "注意：只需要翻譯字幕文字，不要修改任何格式，不要包含任何思考過程：\n"
    "\n"
    "{text}\n"
    "\n"
    "翻譯結果："
)


class OllamaTranslator(HttpTranslationEngine):
    """
    使用本地 Ollama 服务（/api/generate）进行翻译的引擎。

    多个字幕块以空行拼接为一个 prompt，模型返回单个字符串，
    清理后再按空行拆分回各块。
    """

    name = "ollama"

    def __init__(
        self,
        model: str,
        base_url: str = "http://localhost:11434",
        target_lang: str = "zh-TW",
        timeout: float = 30.0,
        sanitizers: Sequence[Sanitizer] = (),
        temperature: float = 0.7,
        top_p: float = 0.9,
    ) -> None:
        super().__init__(timeout=timeout, sanitizers=sanitizers)
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.target_lang = target_lang
        self.temperature = temperature
        self.top_p = top_p

    def _endpoint(self) -> str:
        return f"{self.base_url}/api/generate"

    def build_prompt(self, blocks: Sequence[str]) -> str:
        return PROMPT_TEMPLATE.format(
            target=describe_language(self.target_lang),
            text=BLOCK_SEPARATOR.join(blocks),
        )

    def translate(self, blocks: Sequence[str]) -> List[str]:
        if not blocks:
            return []
        body = {
            "model": self.model,
            "prompt": self.build_prompt(blocks),
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "top_p": self.top_p,
            },
        }
        data = self._request(
            "POST",
            self._endpoint(),
            json=body,
            headers={"Content-Type": "application/json"},
        )
        content = data.get("response") if isinstance(data, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise BackendError("翻譯失敗：無效的響應格式 (missing 'response')")
        return split_blocks(self.clean(content), len(blocks))
