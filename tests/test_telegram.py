"""Unit tests for utils.telegram (no network)."""

import requests

from quant_engine.core.types import TaskKind, TaskResult, TaskStatus
from quant_engine.utils import telegram


class _Resp:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text


def test_not_configured_skips(monkeypatch):
    def fail(*a, **k):
        raise AssertionError("should not post")

    monkeypatch.setattr(telegram.requests, "post", fail)
    assert telegram.send_telegram("hi") is False


def test_send_ok(monkeypatch):
    sent = {}

    def post(url, json, timeout):
        sent.update(url=url, json=json, timeout=timeout)
        return _Resp(200)

    monkeypatch.setattr(telegram.requests, "post", post)
    assert telegram.send_telegram("hi", "tok", "42") is True
    assert sent["json"] == {"chat_id": "42", "text": "hi"}
    assert sent["timeout"] == 10


def test_send_failure_status(monkeypatch):
    monkeypatch.setattr(telegram.requests, "post", lambda *a, **k: _Resp(403, "forbidden"))
    assert telegram.send_telegram("hi", "tok", "42") is False


def test_send_network_error(monkeypatch):
    def post(*a, **k):
        raise requests.ConnectionError("down")

    monkeypatch.setattr(telegram.requests, "post", post)
    assert telegram.send_telegram("hi", "tok", "42") is False


def test_batch_summary():
    results = [
        TaskResult("a", TaskKind.RUN_STRATEGY, TaskStatus.DONE, signals=[]),
        TaskResult("b", TaskKind.RUN_STRATEGY, TaskStatus.FAILED, error="x"),
        TaskResult("c", TaskKind.RUN_STRATEGY, TaskStatus.SKIPPED, error="cancelled before start"),
    ]
    text = telegram.batch_summary(results)
    assert text.startswith("Batch finished: 3 tasks")
    assert "done=1" in text and "failed=1" in text and "skipped=1" in text
