"""Shared fakes for the insight refresh tests.

No network or database is touched: the Gemini model and the asyncpg pool are
replaced with small in-memory stand-ins that record what they were asked to do.
"""

from __future__ import annotations

import json
from types import SimpleNamespace

import pytest

from insights.config import Config


SOFTWARE_INSIGHTS = {
    "salaryRanges": [
        {"role": "Software Engineer", "min": 90000, "max": 160000, "median": 120000, "location": "US"},
        {"role": "Senior Software Engineer", "min": 130000, "max": 210000, "median": 165000, "location": "US"},
        {"role": "DevOps Engineer", "min": 95000, "max": 170000, "median": 125000, "location": "US"},
        {"role": "Data Engineer", "min": 100000, "max": 175000, "median": 130000, "location": "US"},
        {"role": "Engineering Manager", "min": 150000, "max": 250000, "median": 190000, "location": "US"},
    ],
    "growthRate": 8.5,
    "demandLevel": "high",
    "topSkills": ["Python", "Cloud", "Kubernetes", "SQL", "TypeScript"],
    "marketOutlook": "Positive",
    "keyTrends": ["AI tooling", "Platform engineering", "Remote work", "Security", "Edge computing"],
    "recommendedSkills": ["LLM integration", "Rust", "Terraform", "Observability", "System design"],
}


def fenced(payload: dict) -> str:
    return "```json\n" + json.dumps(payload) + "\n```"


def make_response(text, prompt_tokens: int = 100, output_tokens: int = 400):
    part = SimpleNamespace(text=text)
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]))
    usage = SimpleNamespace(prompt_token_count=prompt_tokens, candidates_token_count=output_tokens)
    return SimpleNamespace(candidates=[candidate], usage_metadata=usage)


class FakeModel:
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.prompts = []

    async def generate_content_async(self, contents):
        self.prompts.append(contents[0])
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, str):
            return make_response(outcome)
        return outcome


class FakeDatabase:
    """In-memory stand-in for DatabaseService."""

    def __init__(self, industries, fail_on=None):
        self.industries = list(industries)
        self.fail_on = fail_on or {}
        self.updates = {}
        self.reports = {}
        self.closed = False

    async def get_industries(self):
        return list(self.industries)

    async def update_industry_insight(self, industry, insights, last_updated, next_update):
        if industry in self.fail_on:
            raise self.fail_on[industry]
        self.updates[industry] = {**insights, "lastUpdated": last_updated, "nextUpdate": next_update}
        return 1

    async def create_initial_execution_report(self, trigger):
        self.reports[1] = {"trigger": trigger, "run_status": "RUNNING"}
        return 1

    async def update_execution_report(self, execution_id, report_data):
        self.reports[execution_id] = report_data
        return True

    async def get_latest_execution_report(self):
        return self.reports.get(1)

    async def ping(self):
        return True

    async def close_pool(self):
        self.closed = True


class FakeNotifier:
    def __init__(self):
        self.sent = []

    def send_notification(self, report_data):
        self.sent.append(report_data)
        return True


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep retry backoff out of the test run."""
    monkeypatch.setattr(Config, "RETRY_INITIAL_DELAY", 0)
    monkeypatch.setattr(Config, "NOTIFICATIONS_ENABLED", False)
    monkeypatch.setattr(Config, "CONTINUE_ON_ERROR", False)
