from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def load_dotenv_if_present(env_path: Optional[str | Path] = None) -> None:
    """
    尝试加载 .env 文件（如果存在）。

    - 默认查找当前工作目录下的 .env；
    - 已存在的环境变量不会被覆盖。
    """
    if env_path is None:
        env_file = Path.cwd() / ".env"
    else:
        env_file = Path(env_path)

    if env_file.is_file():
        load_dotenv(dotenv_path=env_file, override=False)
