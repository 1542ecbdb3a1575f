from __future__ import annotations

"""
翻译结果清理策略。

不同后端 / 模型会在译文中夹带提示词回显、推理过程等内容，
这些清理规则按名称注册，由配置选择，引擎在拆分译文前后调用。
"""

import re
from typing import Callable, Dict, Iterable, List, Sequence

Sanitizer = Callable[[str], str]

_PROMPT_ECHO_RE = re.compile(
    r"^[ \t]*(翻譯結果|翻译结果|Translation result)[ \t]*[：:][ \t]*\n?",
    re.IGNORECASE | re.MULTILINE,
)
_THINK_RE = re.compile(r"<think>[\s\S]*?</think>", re.IGNORECASE)
# 保留换行 (\n)，其余控制字符（包括 \u007f）一律去掉
_CONTROL_CHARS_RE = re.compile(r"[\u0000-\u0009\u000B-\u001F\u007F]")
_LATIN_RE = re.compile(r"[a-zA-Z]")


def strip_prompt_echo(text: str) -> str:
    return _PROMPT_ECHO_RE.sub("", text)


def strip_think_tags(text: str) -> str:
    return _THINK_RE.sub("", text)


def strip_control_chars(text: str) -> str:
    return _CONTROL_CHARS_RE.sub("", text)


def strip_latin(text: str) -> str:
    """
    删除所有 ASCII 拉丁字母。

    仅适用于目标语言不含拉丁字母、且模型容易夹带英文推理内容的场景；
    会破坏人名、缩写等合法的混合文字内容，因此必须显式启用。
    """
    return _LATIN_RE.sub("", text)


SANITIZERS: Dict[str, Sanitizer] = {
    "prompt_echo": strip_prompt_echo,
    "think_tags": strip_think_tags,
    "control_chars": strip_control_chars,
    "latin": strip_latin,
}


def get_sanitizers(names: Iterable[str]) -> List[Sanitizer]:
    result: List[Sanitizer] = []
    for name in names:
        key = name.strip().lower()
        if key not in SANITIZERS:
            raise ValueError(f"Unknown sanitizer: {name}")
        result.append(SANITIZERS[key])
    return result


def apply_sanitizers(text: str, sanitizers: Sequence[Sanitizer]) -> str:
    for sanitizer in sanitizers:
        text = sanitizer(text)
    return text.strip()
