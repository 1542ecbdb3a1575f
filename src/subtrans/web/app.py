from __future__ import annotations

import json
import logging
import os
import queue
import threading
from dataclasses import asdict
from typing import Any, Dict, Iterator, Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from subtrans.config import SubTransConfig
from subtrans.env import load_dotenv_if_present
from subtrans.errors import InputError
from subtrans.scheduler import ProgressEvent
from subtrans.translate.translator import TranslationEngine

from .dependencies import (
    UploadTooLarge,
    config_for_request,
    read_upload_text,
    run_translation_for_web,
)

logger = logging.getLogger(__name__)


def _input_http_error(exc: InputError) -> HTTPException:
    status = 413 if isinstance(exc, UploadTooLarge) else 400
    return HTTPException(status_code=status, detail=str(exc))


def _sse(payload: Dict[str, Any]) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def create_app(
    config: Optional[SubTransConfig] = None,
    engine: Optional[TranslationEngine] = None,
) -> FastAPI:
    """
    创建并配置 FastAPI 应用。

    - 未传入 config 时加载 .env 并从环境变量构造；
    - engine 仅用于测试或嵌入场景，未传入时每个请求按配置创建翻译引擎。
    """
    if config is None:
        load_dotenv_if_present()
        config = SubTransConfig.from_env()

    app = FastAPI(
        title="subtrans Web",
        description="Web API for subtrans: 上传 SRT 字幕并返回翻译结果。",
    )
    app.state.config = config

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
        # 请求级错误统一返回 {"error": ...}
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.get("/health", response_class=JSONResponse)
    async def health() -> dict[str, str]:
        """
        简单健康检查，用于部署与监控。
        """
        return {"status": "ok"}

    @app.post("/api/translate", response_class=JSONResponse)
    def translate_api(
        file: Optional[UploadFile] = File(None),
        target_lang: str = Form(""),
    ) -> JSONResponse:
        """
        同步翻译上传的字幕文件，返回完整译文。

        翻译失败的 batch 会保留原文，因此只要输入有效就总能得到完整文档。
        """
        try:
            text = read_upload_text(
                file.filename if file is not None else None,
                file.file if file is not None else None,  # type: ignore[arg-type]
            )
        except InputError as exc:
            raise _input_http_error(exc) from exc

        request_config = config_for_request(app.state.config, target_lang)
        try:
            report = run_translation_for_web(text, request_config, engine=engine)
        except Exception as exc:
            logger.exception("translation request failed")
            raise HTTPException(
                status_code=500,
                detail=f"翻譯過程中發生錯誤，請稍後再試: {exc}",
            ) from exc
        return JSONResponse({"translatedText": report.text, "stats": report.stats()})

    @app.post("/api/translate/stream")
    def translate_stream_api(
        file: Optional[UploadFile] = File(None),
        target_lang: str = Form(""),
    ) -> Any:
        """
        以 Server-Sent Events 形式返回翻译进度。

        每完成一个 batch 推送一次 progress 事件，最后推送 done（或 error）事件。
        """
        try:
            text = read_upload_text(
                file.filename if file is not None else None,
                file.file if file is not None else None,  # type: ignore[arg-type]
            )
        except InputError as exc:
            raise _input_http_error(exc) from exc

        request_config = config_for_request(app.state.config, target_lang)
        events: "queue.Queue[Optional[Dict[str, Any]]]" = queue.Queue()

        def on_progress(event: ProgressEvent) -> None:
            payload = asdict(event)
            payload["status"] = event.status.value
            events.put({"type": "progress", **payload})

        def worker() -> None:
            try:
                report = run_translation_for_web(
                    text, request_config, engine=engine, progress=on_progress
                )
                events.put(
                    {"type": "done", "translatedText": report.text, "stats": report.stats()}
                )
            except Exception as exc:
                logger.exception("streaming translation failed")
                events.put({"type": "error", "error": str(exc)})
            finally:
                events.put(None)

        def event_stream() -> Iterator[str]:
            thread = threading.Thread(target=worker, name="subtrans-stream", daemon=True)
            thread.start()
            while True:
                item = events.get()
                if item is None:
                    break
                yield _sse(item)
            thread.join()

        return StreamingResponse(event_stream(), media_type="text/event-stream")

    return app


# 供 uvicorn 等 ASGI 服务器直接引用
app = create_app()


def main() -> None:
    """
    本地启动 Web 服务的入口。

    可通过环境变量控制监听地址与端口：
      - SUBTRANS_WEB_HOST（默认 127.0.0.1）
      - SUBTRANS_WEB_PORT（默认 8000）
    """
    import uvicorn

    load_dotenv_if_present()
    host = os.getenv("SUBTRANS_WEB_HOST", "127.0.0.1")
    port_str = os.getenv("SUBTRANS_WEB_PORT", "8000")
    try:
        port = int(port_str)
    except ValueError:
        port = 8000

    uvicorn.run("subtrans.web.app:app", host=host, port=port, reload=False)
