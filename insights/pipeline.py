# insights/pipeline.py

import logging
from typing import Dict, Any, List, Optional

from .config import Config
from .database import DatabaseService, RETRYABLE_DB_ERRORS
from .ai_service import AIService
from .notification_service import NotificationService
from .retry import run_step
from .run_statistics import RunStatistics
from .schema import build_refresh_timestamps

logger = logging.getLogger(__name__)


class InsightRefreshError(Exception):
    """Single failure surfaced to callers when a refresh run does not complete."""

    def __init__(self, message: str, results: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.results = results or {}


class InsightRefreshPipeline:
    """Weekly job that regenerates the insight record of every stored industry."""

    def __init__(self, db_service: DatabaseService, ai_service: Optional[AIService] = None,
                 notification_service: Optional[NotificationService] = None,
                 continue_on_error: Optional[bool] = None):
        self.db_service = db_service
        self.ai_service = ai_service
        self.notification_service = notification_service or NotificationService()
        self.continue_on_error = Config.CONTINUE_ON_ERROR if continue_on_error is None else continue_on_error

    @classmethod
    async def create(cls, db_service: Optional[DatabaseService] = None, ai_service: Optional[AIService] = None,
                     notification_service: Optional[NotificationService] = None,
                     continue_on_error: Optional[bool] = None):
        """Asynchronously creates the pipeline, opening the database pool when none is supplied."""
        if db_service is None:
            db_service = await DatabaseService.create()
        if ai_service is None:
            ai_service = AIService()
        return cls(db_service, ai_service, notification_service, continue_on_error)

    async def _fetch_industries(self) -> List[str]:
        return await run_step(
            "Fetch industries",
            self.db_service.get_industries,
            max_retries=Config.DB_MAX_RETRIES,
            initial_delay=Config.RETRY_INITIAL_DELAY,
            retry_on=RETRYABLE_DB_ERRORS,
        )

    async def refresh_industry(self, industry: str) -> Dict[str, Any]:
        """Generates, normalizes and stores the insights for one industry."""
        insights = await self.ai_service.generate_industry_insights(industry)
        last_updated, next_update = build_refresh_timestamps()
        await run_step(
            f"Update {industry} insights",
            self.db_service.update_industry_insight,
            industry, insights, last_updated, next_update,
            max_retries=Config.DB_MAX_RETRIES,
            initial_delay=Config.RETRY_INITIAL_DELAY,
            retry_on=RETRYABLE_DB_ERRORS,
        )
        return {**insights, "lastUpdated": last_updated, "nextUpdate": next_update}

    async def refresh_all_insights(self, industries: Optional[List[str]] = None, trigger: str = "manual",
                                   continue_on_error: Optional[bool] = None) -> Dict[str, Any]:
        """
        Refreshes the insights of ``industries`` (all stored industries by default), one at a time.

        By default the first failure aborts the run. With ``continue_on_error``
        the remaining industries are still processed and the run fails at the end
        if any of them could not be refreshed.

        Raises:
            InsightRefreshError: if any industry could not be refreshed.
        """
        if continue_on_error is None:
            continue_on_error = self.continue_on_error
        statistics = RunStatistics(trigger=trigger)
        self.ai_service.statistics = statistics
        execution_id = await self.db_service.create_initial_execution_report(trigger)
        results = {"success": False, "execution_id": execution_id, "updated": [], "failed": [], "errors": []}

        try:
            if industries is None:
                industries = await self._fetch_industries()
            statistics.set_industries_total(len(industries))
            logger.info(f"--- Refreshing insights for {len(industries)} industries "
                        f"({'continue' if continue_on_error else 'abort'} on error) ---")

            for index, industry in enumerate(industries, start=1):
                logger.info(f"[{index}/{len(industries)}] Refreshing insights for '{industry}'")
                try:
                    await self.refresh_industry(industry)
                except Exception as e:
                    error_msg = f"Failed to refresh insights for '{industry}': {e}"
                    statistics.record_failed_industry(industry)
                    statistics.add_error(error_msg)
                    results["failed"].append(industry)
                    results["errors"].append(error_msg)
                    if not continue_on_error:
                        raise
                    logger.error(error_msg, exc_info=True)
                    continue
                statistics.increment_industries_updated()
                results["updated"].append(industry)

            if results["failed"]:
                raise InsightRefreshError(
                    f"{len(results['failed'])} of {len(industries)} industries failed: {', '.join(results['failed'])}",
                    results)
            results["success"] = True
            logger.info(f"--- Refreshed insights for {len(results['updated'])} industries ---")
            return results
        except Exception as e:
            logger.error(f"Error generating or updating industry insights: {e}", exc_info=True)
            if not results["errors"]:
                error_msg = f"Insight refresh failed: {e}"
                statistics.add_error(error_msg)
                results["errors"].append(error_msg)
            raise InsightRefreshError("Failed to generate or update industry insights", results) from e
        finally:
            statistics.finalize_run("SUCCESS" if results["success"] else "FAILURE")
            final_report = statistics.get_summary_dict()
            await self.db_service.update_execution_report(execution_id, final_report)
            self.notification_service.send_notification(final_report)
            logger.info("Insight refresh run finished.")
