"""Tests for run report notifications (Slack / webhook formatting and dispatch)."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from insights import notification_service
from insights.config import Config
from insights.notification_service import NotificationService

REPORT = {
    "trigger": "scheduler",
    "run_status": "FAILURE",
    "start_time": "2026-10-18T00:00:00+00:00",
    "end_time": "2026-10-18T00:03:00+00:00",
    "duration_seconds": 180.0,
    "industries_total": 3,
    "industries_updated": 1,
    "industries_failed": 1,
    "failed_industries": ["Healthcare"],
    "api_calls_gemini": 2,
    "gemini_total_tokens": 1000,
    "error_summary": ["Failed to refresh insights for 'Healthcare': not JSON"],
}


def test_slack_message_highlights_failures() -> None:
    message = NotificationService()._format_slack_message(REPORT)
    attachment = message["attachments"][0]
    assert attachment["color"] == "danger"
    assert "FAILED" in attachment["title"]
    titles = {f["title"]: f["value"] for f in attachment["fields"]}
    assert titles["Failed Industries"] == "Healthcare"
    assert "not JSON" in titles["Error Summary"]


def test_disabled_notifications_send_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    monkeypatch.setattr(notification_service.requests, "post", lambda *a, **k: calls.append(a))
    assert NotificationService().send_notification(REPORT) is True
    assert calls == []


def test_slack_and_webhook_are_posted(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Config, "NOTIFICATIONS_ENABLED", True)
    monkeypatch.setattr(Config, "NOTIFICATION_TYPE", "all")
    monkeypatch.setattr(Config, "SLACK_WEBHOOK_URL", "https://hooks.slack.test/abc")
    monkeypatch.setattr(Config, "CUSTOM_WEBHOOK_URL", "https://hooks.example.test/insights")
    posted = []

    def fake_post(url, **kwargs):
        posted.append(url)
        return SimpleNamespace(status_code=200, text="ok")

    monkeypatch.setattr(notification_service.requests, "post", fake_post)

    NotificationService().send_notification(REPORT)

    assert posted == ["https://hooks.slack.test/abc", "https://hooks.example.test/insights"]


def test_email_body_lists_run_summary_and_escapes_errors() -> None:
    report = dict(REPORT, error_summary=["Failed to parse <html> response"])
    body = NotificationService()._format_email_message(report)
    assert "<li><strong>Updated:</strong> 1</li>" in body
    assert "<li><strong>Status:</strong> FAILURE</li>" in body
    assert "&lt;html&gt; response" in body
