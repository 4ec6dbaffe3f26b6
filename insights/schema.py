"""
Cleanup, validation and normalization of model-generated industry insights.
"""
import json
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional, Tuple

from .ai_schemas import (
    DEMAND_LEVELS,
    MARKET_OUTLOOKS,
    INSIGHT_FIELDS,
    LIST_FIELDS,
    INDUSTRY_INSIGHT_SCHEMA,
    SALARY_RANGE_SCHEMA,
)

logger = logging.getLogger(__name__)

REFRESH_INTERVAL = timedelta(days=7)

CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\n?")

ENUM_FIELDS = {
    "demandLevel": DEMAND_LEVELS,
    "marketOutlook": MARKET_OUTLOOKS,
}


class InsightParseError(ValueError):
    """Raised when a model response cannot be turned into a valid insight record."""


def clean_model_text(text: Optional[str]) -> str:
    """Strips markdown code fences (``` and ```json) and surrounding whitespace."""
    if not text:
        return ""
    return CODE_FENCE_PATTERN.sub("", text).strip()


def parse_insights(text: Optional[str]) -> Dict[str, Any]:
    """
    Parses the raw model text into a dictionary.

    Raises:
        InsightParseError: if the cleaned text is not a JSON object or lacks
            one of the documented insight keys.
    """
    cleaned_text = clean_model_text(text)
    try:
        insights = json.loads(cleaned_text)
    except json.JSONDecodeError as e:
        raise InsightParseError(f"Model response is not valid JSON: {e}") from e

    if not isinstance(insights, dict):
        raise InsightParseError(f"Expected a JSON object, got {type(insights).__name__}")

    missing = [key for key in INDUSTRY_INSIGHT_SCHEMA["required"] if key not in insights]
    if missing:
        raise InsightParseError(f"Model response is missing keys: {', '.join(missing)}")
    return insights


def normalize_enum_fields(insights: Dict[str, Any]) -> Dict[str, Any]:
    """Upper-cases demandLevel and marketOutlook so they match the database enums."""
    for field_name, allowed in ENUM_FIELDS.items():
        value = insights.get(field_name)
        if not isinstance(value, str):
            raise InsightParseError(f"'{field_name}' must be a string, got {value!r}")
        normalized = value.strip().upper()
        if normalized not in allowed:
            raise InsightParseError(f"'{field_name}' has invalid value {value!r}; expected one of {allowed}")
        insights[field_name] = normalized
    return insights


def transform_insight_data(insights: Dict[str, Any]) -> Dict[str, Any]:
    """Reduces a parsed response to the storable insight fields."""
    extra_keys = set(insights) - set(INSIGHT_FIELDS)
    if extra_keys:
        logger.warning(f"Dropping unexpected keys from model response: {sorted(extra_keys)}")

    record = {key: insights[key] for key in INSIGHT_FIELDS}

    for key in LIST_FIELDS:
        if not isinstance(record[key], list):
            raise InsightParseError(f"'{key}' must be a list, got {type(record[key]).__name__}")

    try:
        record["growthRate"] = float(record["growthRate"])
    except (TypeError, ValueError) as e:
        raise InsightParseError(f"'growthRate' must be numeric, got {record['growthRate']!r}") from e

    for salary_range in record["salaryRanges"]:
        if not isinstance(salary_range, dict):
            raise InsightParseError(f"Salary range entries must be objects, got {salary_range!r}")
        missing = [key for key in SALARY_RANGE_SCHEMA["required"] if key not in salary_range]
        if missing:
            logger.warning(f"Salary range for role '{salary_range.get('role')}' is missing {missing}")

    for key in ("topSkills", "keyTrends", "recommendedSkills"):
        non_strings = [item for item in record[key] if not isinstance(item, str)]
        if non_strings:
            raise InsightParseError(f"'{key}' must contain only strings, got {non_strings[0]!r}")
    return record


def build_refresh_timestamps(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Returns (last_updated, next_update) as naive UTC datetimes exactly one interval apart."""
    if now is None:
        now = datetime.now(timezone.utc)
    last_updated = now.astimezone(timezone.utc).replace(tzinfo=None) if now.tzinfo else now
    return last_updated, last_updated + REFRESH_INTERVAL
