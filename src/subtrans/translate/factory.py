from __future__ import annotations

from typing import Tuple

from subtrans.config import SubTransConfig

from .google_translator import GoogleTranslator
from .llm_translator import LLMTranslator
from .ollama_translator import OllamaTranslator
from .sanitizers import get_sanitizers
from .translator import TranslationEngine

DEFAULT_SANITIZERS = {
    "ollama": ("think_tags", "prompt_echo", "control_chars"),
    "google": ("control_chars",),
    "llm": ("control_chars",),
}


def sanitizer_names_for(config: SubTransConfig) -> Tuple[str, ...]:
    if config.sanitizers is not None:
        return tuple(config.sanitizers)
    return DEFAULT_SANITIZERS.get(config.engine, ())


def get_translation_engine(config: SubTransConfig) -> TranslationEngine:
    """
    根据配置返回对应的翻译引擎实例。

    支持：
      - "ollama" : OllamaTranslator（本地模型服务）
      - "google" : GoogleTranslator
      - "llm"    : LLMTranslator（OpenAI Chat Completions 兼容接口）
    """
    key = config.engine.lower()
    sanitizers = get_sanitizers(sanitizer_names_for(config))
    if key == "ollama":
        return OllamaTranslator(
            model=config.model,
            base_url=config.endpoint,
            target_lang=config.target_lang,
            timeout=config.request_timeout,
            sanitizers=sanitizers,
        )
    if key == "google":
        return GoogleTranslator(
            base_url=config.endpoint,
            source_lang=config.source_lang,
            target_lang=config.target_lang,
            timeout=config.request_timeout,
            sanitizers=sanitizers,
        )
    if key == "llm":
        return LLMTranslator(
            url=config.endpoint,
            model=config.model,
            api_key=config.api_key,
            source_lang=config.source_lang,
            target_lang=config.target_lang,
            timeout=config.request_timeout,
            sanitizers=sanitizers,
        )
    raise ValueError(f"Unknown translation engine: {config.engine}")
