from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Sequence

from subtrans.errors import BackendError

from .sanitizers import Sanitizer
from .translator import HttpTranslationEngine, describe_language

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a professional subtitle translator.

The user message is a JSON object:
  {"source_language": str, "target_language": str,
   "blocks": [{"index": int, "text": str}, ...]}

Translate the "text" of every block into the target language.
- Keep line breaks inside a block, punctuation and formatting tags as they are.
- If a block is already in the target language, return it unchanged.
- Never merge, split, drop or reorder blocks.
- Do not add explanations or reasoning.

Reply with a single JSON object:
  {"translations": [{"index": int, "translated_text": str}, ...]}
containing exactly one entry for every input index.
"""

TRANSLATION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "translations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "index": {"type": "integer"},
                    "translated_text": {"type": "string"},
                },
                "required": ["index", "translated_text"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["translations"],
    "additionalProperties": False,
}


class LLMTranslator(HttpTranslationEngine):
    """
    使用外部 LLM 服务（兼容 OpenAI Chat Completions）进行翻译的引擎。

    请求与响应都采用 JSON，响应已按块分段，因此不需要再按空行拆分。

    环境变量约定（来自 .env 或系统环境）：
      - SUBTRANS_LLM_STRUCTURED          # "1" 时启用 json_schema 结构化输出
      - SUBTRANS_LLM_RESPONSE_FORMAT_KEY # 结构化输出参数名，默认 response_format
      - SUBTRANS_LLM_DEBUG               # "1" 时以 DEBUG 级别记录请求与原始响应
    """

    name = "llm"

    def __init__(
        self,
        url: str,
        model: str,
        api_key: str | None = None,
        source_lang: str = "auto",
        target_lang: str = "zh-TW",
        timeout: float = 30.0,
        sanitizers: Sequence[Sanitizer] = (),
        temperature: float = 0.2,
    ) -> None:
        if not url or not model:
            raise ValueError("LLMTranslator requires both an endpoint URL and a model name.")
        super().__init__(timeout=timeout, sanitizers=sanitizers)
        self.url = url
        self.model = model
        self.api_key = api_key
        self.source_lang = source_lang
        self.target_lang = target_lang
        self.temperature = temperature
        self.structured = os.getenv("SUBTRANS_LLM_STRUCTURED", "").strip() == "1"
        # 某些非 OpenAI 平台可能使用不同的参数名（例如 "format"）
        self.response_format_key = os.getenv(
            "SUBTRANS_LLM_RESPONSE_FORMAT_KEY", "response_format"
        ).strip()
        self.debug = os.getenv("SUBTRANS_LLM_DEBUG", "").strip() == "1"

    def _debug_log(self, title: str, payload: Any) -> None:
        if not self.debug:
            return
        try:
            text = json.dumps(payload, ensure_ascii=False, indent=2)
        except TypeError:
            text = repr(payload)
        logger.debug("[LLM DEBUG] %s\n%s", title, text)

    def _call_chat(self, user_payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        调用 Chat Completions 接口并把 content 解析为 JSON 对象。
        """
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        body: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": json.dumps(user_payload, ensure_ascii=False)},
            ],
            "temperature": self.temperature,
        }
        if self.structured and self.response_format_key:
            body[self.response_format_key] = {
                "type": "json_schema",
                "json_schema": {
                    "name": "subtrans_translation",
                    "strict": True,
                    "schema": TRANSLATION_SCHEMA,
                },
            }

        self._debug_log("请求体预览", body)
        data = self._request("POST", self.url, headers=headers, data=json.dumps(body))
        self._debug_log("完整响应 JSON", data)

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise BackendError("LLM response missing 'choices' field")

        first = choices[0]
        if not isinstance(first, dict):
            raise BackendError(f"LLM response choice is not an object: {type(first).__name__}")
        content: Any = None
        # OpenAI Chat: choices[0].message.content
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
        # 某些实现直接在 text 字段返回
        if content is None and "text" in first:
            content = first.get("text")
        if not content:
            raise BackendError("LLM response missing 'content'/'text' in first choice")
        if not isinstance(content, str):
            raise BackendError(f"LLM content is not a string: {type(content).__name__}")

        try:
            result = json.loads(content)
        except json.JSONDecodeError as parse_err:
            raise BackendError(
                f"LLM returned non-JSON content (first 500 chars): {content[:500]}"
            ) from parse_err
        if not isinstance(result, dict):
            raise BackendError("LLM returned JSON that is not an object")
        return result

    def translate(self, blocks: Sequence[str]) -> List[str]:
        if not blocks:
            return []
        user_payload = {
            "source_language": describe_language(self.source_lang),
            "target_language": describe_language(self.target_lang),
            "blocks": [{"index": i, "text": text} for i, text in enumerate(blocks)],
        }
        result = self._call_chat(user_payload)

        entries = result.get("translations")
        if not isinstance(entries, list):
            raise BackendError("LLM response 'translations' is not a list")

        by_index: Dict[int, str] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                idx = int(entry.get("index"))
            except (TypeError, ValueError):
                continue
            by_index[idx] = self.clean(str(entry.get("translated_text") or ""))

        missing = [i for i in range(len(blocks)) if i not in by_index]
        if missing or len(by_index) != len(blocks):
            raise BackendError(
                f"LLM returned {len(by_index)} translations for {len(blocks)} blocks"
            )
        return [by_index[i] for i in range(len(blocks))]
