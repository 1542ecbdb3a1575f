from __future__ import annotations

from .translator import TranslationEngine
from .ollama_translator import OllamaTranslator
from .google_translator import GoogleTranslator
from .llm_translator import LLMTranslator

__all__ = ["TranslationEngine", "OllamaTranslator", "GoogleTranslator", "LLMTranslator"]
