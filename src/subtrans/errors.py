from __future__ import annotations

"""
subtrans 使用的异常类型。

- BackendError: 翻译后端调用失败（网络、超时、非 2xx 状态、响应格式或段数不匹配）；
  由 RetryExecutor 重试，最终在 batch 粒度转为回退原文，不会向外传播；
- InputError: 边界层（CLI / Web）未收到有效字幕内容时抛出。
"""


class SubTransError(Exception):
    """subtrans 所有异常的基类。"""


class BackendError(SubTransError):
    """翻译后端调用失败。"""


class InputError(SubTransError):
    """未提供字幕文件或内容无效。"""
