"""
Run statistics collection for insight refresh execution reporting.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class RunStatistics:
    """Statistics collector for insight refresh runs."""

    trigger: str = "manual"
    run_status: str = "RUNNING"
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: Optional[datetime] = None
    duration_seconds: float = 0.0

    industries_total: int = 0
    industries_updated: int = 0
    industries_failed: int = 0
    failed_industries: List[str] = field(default_factory=list)

    api_calls_gemini: int = 0
    gemini_input_tokens: int = 0
    gemini_output_tokens: int = 0
    gemini_total_tokens: int = 0

    error_summary: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def __post_init__(self):
        logger.info(f"Run statistics initialized for trigger='{self.trigger}'")

    def set_industries_total(self, count: int):
        self.industries_total = count

    def increment_industries_updated(self, count: int = 1):
        self.industries_updated += count

    def record_failed_industry(self, industry: str):
        self.industries_failed += 1
        self.failed_industries.append(industry)

    def increment_api_call(self, api_type: str, count: int = 1):
        if "gemini" in api_type:
            self.api_calls_gemini += count

    def add_gemini_tokens(self, input_tokens: int, output_tokens: int):
        self.gemini_input_tokens += input_tokens
        self.gemini_output_tokens += output_tokens
        self.gemini_total_tokens += (input_tokens + output_tokens)

    def add_error(self, error_message: str):
        self.errors.append(error_message)
        if len(self.errors) > 10:
            self.errors = self.errors[-10:]
        logger.error(f"Added error to statistics: {error_message}")

    def finalize_run(self, status: str = "SUCCESS"):
        """Finalize the run statistics."""
        self.end_time = datetime.now(timezone.utc)
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()
        self.run_status = status
        if self.errors:
            self.error_summary = self.errors

        logger.info(f"Run finalized with status: {self.run_status}, duration: {self.duration_seconds:.2f}s")

    def get_summary_dict(self) -> Dict[str, Any]:
        """Get a dictionary representation of the statistics for database storage."""
        return {
            "trigger": self.trigger,
            "run_status": self.run_status,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_seconds": self.duration_seconds,
            "industries_total": self.industries_total,
            "industries_updated": self.industries_updated,
            "industries_failed": self.industries_failed,
            "failed_industries": list(self.failed_industries),
            "api_calls_gemini": self.api_calls_gemini,
            "gemini_input_tokens": self.gemini_input_tokens,
            "gemini_output_tokens": self.gemini_output_tokens,
            "gemini_total_tokens": self.gemini_total_tokens,
            "error_summary": list(self.error_summary),
        }
