"""Tests for the Gemini-backed insight generation service."""

from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace

import pytest
from google.api_core import exceptions as api_core_exceptions

from insights.ai_service import AIService, ResponseShapeError, build_industry_insight_prompt
from insights.run_statistics import RunStatistics
from insights.schema import InsightParseError

from conftest import SOFTWARE_INSIGHTS, FakeModel, fenced


def test_prompt_names_the_industry_and_shape() -> None:
    prompt = build_industry_insight_prompt("Healthcare")
    assert "Analyze the current state of the Healthcare industry" in prompt
    assert '"demandLevel": "High" | "Medium" | "Low"' in prompt
    assert "Include at least 5 common roles for salary ranges." in prompt


def test_generate_industry_insights_normalizes_response() -> None:
    model = FakeModel(fenced(SOFTWARE_INSIGHTS))
    service = AIService(model=model, retry_delay=0)

    record = asyncio.run(service.generate_industry_insights("Software Engineering"))

    assert record["demandLevel"] == "HIGH"
    assert record["marketOutlook"] == "POSITIVE"
    assert len(record["salaryRanges"]) == 5
    assert "Software Engineering" in model.prompts[0]


def test_generate_industry_insights_records_usage() -> None:
    statistics = RunStatistics()
    service = AIService(model=FakeModel(json.dumps(SOFTWARE_INSIGHTS)), statistics=statistics, retry_delay=0)

    asyncio.run(service.generate_industry_insights("Software Engineering"))

    assert statistics.api_calls_gemini == 1
    assert statistics.gemini_total_tokens == 500


def test_transient_errors_are_retried() -> None:
    model = FakeModel(api_core_exceptions.ResourceExhausted("quota"), fenced(SOFTWARE_INSIGHTS))
    service = AIService(model=model, max_retries=3, retry_delay=0)

    record = asyncio.run(service.generate_industry_insights("Software Engineering"))

    assert record["demandLevel"] == "HIGH"
    assert len(model.prompts) == 2


def test_transient_errors_give_up_after_max_retries() -> None:
    model = FakeModel(api_core_exceptions.ServiceUnavailable("down"))
    service = AIService(model=model, max_retries=2, retry_delay=0)

    with pytest.raises(api_core_exceptions.ServiceUnavailable):
        asyncio.run(service.generate_industry_insights("Software Engineering"))
    assert len(model.prompts) == 2


def test_malformed_response_is_not_retried() -> None:
    model = FakeModel("I cannot help with that.")
    service = AIService(model=model, max_retries=3, retry_delay=0)

    with pytest.raises(InsightParseError):
        asyncio.run(service.generate_industry_insights("Software Engineering"))
    assert len(model.prompts) == 1


def test_response_without_candidates_is_a_shape_error() -> None:
    model = FakeModel(SimpleNamespace(candidates=[], usage_metadata=None))
    service = AIService(model=model, retry_delay=0)

    with pytest.raises(ResponseShapeError):
        asyncio.run(service.generate_industry_insights("Software Engineering"))


def test_extract_response_text_defaults_to_empty_string() -> None:
    part = SimpleNamespace(text=None)
    response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])
    assert AIService._extract_response_text(response) == ""
