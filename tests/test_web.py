import importlib
import json

import pytest
from fastapi.testclient import TestClient

from subtrans.config import SubTransConfig
from subtrans.web import create_app

from fakes import FailingEngine, UpperEngine


def _client(engine=None, **overrides):
    params = {"max_block_size": 1, "retry_delay": 0.0}
    params.update(overrides)
    return TestClient(create_app(config=SubTransConfig(**params), engine=engine or UpperEngine()))


def _upload(text, name="movie.srt"):
    return {"file": (name, text.encode("utf-8"), "text/plain")}


def _events(body):
    return [
        json.loads(line[len("data: "):])
        for line in body.splitlines()
        if line.startswith("data: ")
    ]


def test_health():
    assert _client().get("/health").json() == {"status": "ok"}


def test_translate_returns_document(sample_srt):
    resp = _client().post("/api/translate", files=_upload(sample_srt))

    assert resp.status_code == 200
    data = resp.json()
    assert data["translatedText"].startswith("1\n00:00:01,000 --> 00:00:02,000\nHELLO\n")
    assert data["stats"]["batches"] == 3
    assert data["stats"]["fallback"] == 0


def test_translate_falls_back_when_backend_is_down(sample_srt):
    resp = _client(engine=FailingEngine(), max_retries=2).post(
        "/api/translate", files=_upload(sample_srt)
    )

    assert resp.status_code == 200
    assert resp.json()["translatedText"] == sample_srt
    assert resp.json()["stats"]["fallback_batches"] == [0, 1, 2]


def test_missing_file_is_rejected():
    resp = _client().post("/api/translate", data={"target_lang": "ja"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "未提供檔案"


@pytest.mark.parametrize(
    "files",
    [
        {"file": ("movie.txt", b"1\n", "text/plain")},
        {"file": ("movie.srt", b"   \n", "text/plain")},
        {"file": ("movie.srt", b"\xff\xfe\x00bad", "text/plain")},
    ],
)
def test_invalid_uploads_are_rejected(files):
    resp = _client().post("/api/translate", files=files)

    assert resp.status_code == 400
    assert "error" in resp.json()


def test_upload_size_limit(monkeypatch, sample_srt):
    monkeypatch.setenv("SUBTRANS_WEB_MAX_UPLOAD_MB", "0")

    resp = _client().post("/api/translate", files=_upload(sample_srt))

    assert resp.status_code == 413


def test_stream_reports_progress_then_result(sample_srt):
    resp = _client().post("/api/translate/stream", files=_upload(sample_srt))

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    events = _events(resp.text)
    progress = [e for e in events if e["type"] == "progress"]
    assert [e["completed"] for e in progress] == [1, 2, 3]
    assert all(e["total"] == 3 for e in progress)
    assert events[-1]["type"] == "done"
    assert "HOW ARE YOU?\nFINE." in events[-1]["translatedText"]


def test_stream_rejects_missing_file():
    resp = _client().post("/api/translate/stream", data={})

    assert resp.status_code == 400


def test_unexpected_failure_returns_500_with_error_body(monkeypatch, sample_srt):
    web_app = importlib.import_module("subtrans.web.app")

    def explode(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(web_app, "run_translation_for_web", explode)

    resp = _client().post("/api/translate", files=_upload(sample_srt))

    assert resp.status_code == 500
    assert "disk full" in resp.json()["error"]
