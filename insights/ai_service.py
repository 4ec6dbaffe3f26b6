"""
AI service for industry insight generation using Google's Gemini model via the Vertex AI SDK.
"""
import asyncio
import logging
from typing import Dict, Any, Optional

from vertexai.generative_models import GenerativeModel
from google.api_core import exceptions as api_core_exceptions

from .config import Config
from .retry import run_step
from .schema import parse_insights, normalize_enum_fields, transform_insight_data

logger = logging.getLogger(__name__)

RETRYABLE_AI_ERRORS = (
    asyncio.TimeoutError,
    api_core_exceptions.ResourceExhausted,
    api_core_exceptions.ServiceUnavailable,
    api_core_exceptions.InternalServerError,
    api_core_exceptions.DeadlineExceeded,
)

INDUSTRY_INSIGHT_PROMPT = """
Analyze the current state of the {industry} industry and provide insights in ONLY the following JSON format without any additional notes or explanations:
{{
  "salaryRanges": [
    {{ "role": "string", "min": number, "max": number, "median": number, "location": "string" }}
  ],
  "growthRate": number,
  "demandLevel": "High" | "Medium" | "Low",
  "topSkills": ["skill1", "skill2"],
  "marketOutlook": "Positive" | "Neutral" | "Negative",
  "keyTrends": ["trend1", "trend2"],
  "recommendedSkills": ["skill1", "skill2"]
}}

IMPORTANT: Return ONLY the JSON. No additional text, notes, or markdown formatting.
Include at least 5 common roles for salary ranges.
Growth rate should be a percentage.
Include at least 5 skills and trends.
"""


class ResponseShapeError(ValueError):
    """Raised when the model response has no candidate text to parse."""


def build_industry_insight_prompt(industry: str) -> str:
    return INDUSTRY_INSIGHT_PROMPT.format(industry=industry)


class AIService:
    """Generates structured labor-market insights for a single industry."""

    def __init__(self, model: Optional[GenerativeModel] = None, statistics=None,
                 max_retries: Optional[int] = None, retry_delay: Optional[float] = None):
        # vertexai.init() must already have been called when no model is supplied
        self.model = model if model is not None else GenerativeModel(Config.GEMINI_MODEL)
        self.statistics = statistics
        self.max_retries = Config.AI_MAX_RETRIES if max_retries is None else max_retries
        self.retry_delay = Config.RETRY_INITIAL_DELAY if retry_delay is None else retry_delay

    @staticmethod
    def _extract_response_text(response) -> str:
        """Returns the text of the first part of the first candidate."""
        try:
            candidate = response.candidates[0]
            part = candidate.content.parts[0]
            text = part.text
        except (AttributeError, IndexError, ValueError, TypeError) as e:
            raise ResponseShapeError(f"Model response has no candidate text: {e}") from e
        return text or ""

    def _record_usage(self, response):
        if not self.statistics:
            return
        usage = getattr(response, 'usage_metadata', None)
        if usage is not None:
            self.statistics.add_gemini_tokens(getattr(usage, 'prompt_token_count', 0) or 0,
                                              getattr(usage, 'candidates_token_count', 0) or 0)

    async def _generate_content(self, prompt: str):
        if self.statistics: self.statistics.increment_api_call("gemini")
        return await asyncio.wait_for(
            self.model.generate_content_async(contents=[prompt]),
            timeout=Config.GEMINI_API_TIMEOUT,
        )

    async def generate_industry_insights(self, industry: str) -> Dict[str, Any]:
        """
        Asks the model for insights on ``industry`` and returns the storable record.

        Transient API failures are retried; malformed responses are not.
        """
        prompt = build_industry_insight_prompt(industry)
        logger.info(f"Sending insight prompt for industry '{industry}' to {Config.GEMINI_MODEL}...")
        response = await run_step(
            f"Generate {industry} insights",
            self._generate_content,
            prompt,
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
            retry_on=RETRYABLE_AI_ERRORS,
        )
        self._record_usage(response)

        text = self._extract_response_text(response)
        insights = normalize_enum_fields(parse_insights(text))
        record = transform_insight_data(insights)
        logger.info(f"Parsed insights for '{industry}': demandLevel={record['demandLevel']}, "
                    f"marketOutlook={record['marketOutlook']}, {len(record['salaryRanges'])} salary ranges")
        return record
