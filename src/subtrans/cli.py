from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import ENGINES, SubTransConfig
from .env import load_dotenv_if_present
from .errors import InputError
from .pipeline import SubTransPipeline


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="subtrans",
        description="subtrans: 批量翻译 SRT 字幕，保留序号与时间轴不变。",
    )
    parser.add_argument(
        "input",
        type=str,
        help="输入 SRT 字幕文件路径（UTF-8）。",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="输出文件路径（默认: 与输入同目录，文件名加 .translated 后缀）。",
    )
    parser.add_argument(
        "--engine",
        type=str,
        choices=list(ENGINES),
        default=None,
        help="翻译引擎：ollama / google / llm（默认读取 SUBTRANS_ENGINE，否则 ollama）。",
    )
    parser.add_argument("--model", type=str, default=None, help="模型名称。")
    parser.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="后端地址（Ollama 服务根地址 / Google 兼容接口 / Chat Completions 完整 URL）。",
    )
    parser.add_argument("--source-lang", type=str, default=None, help="源语言代码（默认 auto）。")
    parser.add_argument(
        "--target-lang", type=str, default=None, help="目标语言代码（默认 zh-TW）。"
    )
    parser.add_argument(
        "--max-block-size", type=int, default=None, help="每个 batch 的最大字幕条数（默认 20）。"
    )
    parser.add_argument(
        "--max-retries", type=int, default=None, help="每个 batch 的最大尝试次数（默认 3）。"
    )
    parser.add_argument(
        "--retry-delay", type=float, default=None, help="重试间隔秒数（默认 1.0）。"
    )
    parser.add_argument(
        "--concurrency", type=int, default=None, help="同时进行的翻译请求数（默认 2）。"
    )
    parser.add_argument(
        "--request-timeout", type=float, default=None, help="单次请求超时秒数（默认 30）。"
    )
    parser.add_argument(
        "--sanitizers",
        type=str,
        default=None,
        help="逗号分隔的译文清理策略：prompt_echo, think_tags, control_chars, latin。",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="输出调试日志（包括每个 batch 的原文与译文）。",
    )
    return parser


def default_output_path(input_path: str | Path) -> Path:
    base = Path(input_path).expanduser().resolve()
    return base.with_name(base.stem + ".translated" + (base.suffix or ".srt"))


def main(argv: list[str] | None = None) -> int:
    # 确保在解析参数和使用配置之前加载 .env 中的环境变量
    load_dotenv_if_present()
    if argv is None:
        argv = sys.argv[1:]

    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    output_path = Path(args.output) if args.output else default_output_path(args.input)

    try:
        config = SubTransConfig.from_env(
            engine=args.engine,
            model=args.model,
            endpoint=args.endpoint,
            source_lang=args.source_lang,
            target_lang=args.target_lang,
            max_block_size=args.max_block_size,
            max_retries=args.max_retries,
            retry_delay=args.retry_delay,
            concurrency=args.concurrency,
            request_timeout=args.request_timeout,
            sanitizers=args.sanitizers,
        )
        pipeline = SubTransPipeline(config)
        report = pipeline.translate_file(args.input, output_path)
        print("字幕翻译完成")
        print(f"   输入: {Path(args.input)}")
        print(f"   输出: {output_path}")
        print(f"   字幕条数: {report.caption_count}")
        print(f"   batch 数: {report.batch_count}")
        if report.fallback_batches:
            print(f"   保留原文的 batch: {len(report.fallback_batches)}")
        return 0
    except InputError as exc:
        print(f"输入错误: {exc}")
        return 1
    except KeyboardInterrupt:
        print("\n用户中断")
        return 1
    except Exception as exc:
        print(f"处理失败: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
