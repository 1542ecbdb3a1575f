from __future__ import annotations

"""
subtrans Web 子模块

提供基于 FastAPI 的字幕翻译 API。
"""

from .app import app, create_app, main

__all__ = ["app", "create_app", "main"]
