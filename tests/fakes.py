"""测试用的假翻译引擎与样例字幕。"""

from __future__ import annotations

import threading
from typing import Callable, List, Sequence

from subtrans.errors import BackendError
from subtrans.translate.translator import TranslationEngine

SAMPLE_SRT = (
    "1\n"
    "00:00:01,000 --> 00:00:02,000\n"
    "Hello\n"
    "\n"
    "2\n"
    "00:00:03,000 --> 00:00:04,000\n"
    "How are you?\n"
    "Fine.\n"
    "\n"
    "3\n"
    "00:00:05,000 --> 00:00:06,500\n"
    "Bye\n"
)


class IdentityEngine(TranslationEngine):
    name = "identity"

    def translate(self, blocks: Sequence[str]) -> List[str]:
        return list(blocks)


class UpperEngine(TranslationEngine):
    name = "upper"

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self._lock = threading.Lock()

    def translate(self, blocks: Sequence[str]) -> List[str]:
        with self._lock:
            self.calls.append(list(blocks))
        return [block.upper() for block in blocks]


class FailingEngine(TranslationEngine):
    name = "failing"

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def translate(self, blocks: Sequence[str]) -> List[str]:
        with self._lock:
            self.calls.append(tuple(blocks))
        raise BackendError("backend unavailable")


class ScriptedEngine(TranslationEngine):
    """按调用顺序依次返回结果或抛出异常。"""

    name = "scripted"

    def __init__(self, script: List[Callable[[Sequence[str]], List[str]]]) -> None:
        self.script = list(script)
        self.calls = 0

    def translate(self, blocks: Sequence[str]) -> List[str]:
        step = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        return step(blocks)
