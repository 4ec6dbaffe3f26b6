"""Tests for the one-shot refresh command-line interface.

Vertex AI initialisation and pipeline construction are patched so the CLI runs
against the in-memory database and fake model from ``conftest``.
"""

from __future__ import annotations

import asyncio

import pytest

import refresh_insights
from insights.ai_service import AIService
from insights.config import Config
from insights.pipeline import InsightRefreshPipeline

from conftest import SOFTWARE_INSIGHTS, FakeDatabase, FakeModel, FakeNotifier, fenced


@pytest.fixture
def cli_env(monkeypatch: pytest.MonkeyPatch):
    """Patches external setup and returns a helper that installs the fakes."""
    init_calls = []
    monkeypatch.setattr(Config, "validate", classmethod(lambda cls: True))
    monkeypatch.setattr(refresh_insights.vertexai, "init", lambda **kwargs: init_calls.append(kwargs))

    created = {}

    def install(db: FakeDatabase, model: FakeModel) -> dict:
        async def fake_create(continue_on_error=None):
            created["continue_on_error"] = continue_on_error
            return InsightRefreshPipeline(db, AIService(model=model, retry_delay=0), FakeNotifier(),
                                          continue_on_error=continue_on_error)

        monkeypatch.setattr(refresh_insights.InsightRefreshPipeline, "create", fake_create)
        return created

    install.init_calls = init_calls
    return install


def test_single_industry_run_exits_zero(cli_env) -> None:
    db = FakeDatabase(["Finance", "Healthcare"])
    cli_env(db, FakeModel(fenced(SOFTWARE_INSIGHTS)))

    exit_code = asyncio.run(refresh_insights.main(["-i", "Finance"]))

    assert exit_code == 0
    assert list(db.updates) == ["Finance"]
    assert db.reports[1]["trigger"] == "cli"
    assert db.closed is True
    assert len(cli_env.init_calls) == 1


def test_repeated_industry_flags_are_all_refreshed(cli_env) -> None:
    db = FakeDatabase(["Finance", "Healthcare", "Retail"])
    cli_env(db, FakeModel(fenced(SOFTWARE_INSIGHTS)))

    exit_code = asyncio.run(refresh_insights.main(["--industry", "Retail", "-i", "Finance"]))

    assert exit_code == 0
    assert list(db.updates) == ["Retail", "Finance"]


def test_malformed_response_exits_one(cli_env) -> None:
    db = FakeDatabase(["Finance"])
    created = cli_env(db, FakeModel("not json"))

    exit_code = asyncio.run(refresh_insights.main([]))

    assert exit_code == 1
    assert db.updates == {}
    assert db.closed is True
    assert created["continue_on_error"] is None


def test_continue_on_error_flag_reaches_pipeline(cli_env) -> None:
    db = FakeDatabase(["Finance", "Healthcare", "Retail"])
    created = cli_env(db, FakeModel(fenced(SOFTWARE_INSIGHTS), "not json", fenced(SOFTWARE_INSIGHTS)))

    exit_code = asyncio.run(refresh_insights.main(["--continue-on-error"]))

    assert created["continue_on_error"] is True
    assert exit_code == 1
    assert list(db.updates) == ["Finance", "Retail"]
    assert db.closed is True
