# insights/database.py

"""
Asynchronous database operations for PostgreSQL using asyncpg.
"""
import logging
import json
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone

import asyncpg
from dateutil import parser

from .config import Config

logger = logging.getLogger(__name__)


class RecordNotFoundError(LookupError):
    """Raised when an update targets an industry that has no insight row."""


RETRYABLE_DB_ERRORS = (
    OSError,
    TimeoutError,
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.InterfaceError,
    asyncpg.exceptions.TooManyConnectionsError,
    asyncpg.exceptions.DeadlockDetectedError,
    asyncpg.exceptions.SerializationError,
)


def _parse_datetime_string(dt_string: Optional[str]) -> Optional[datetime]:
    """
    Safely parses various string formats into a naive UTC datetime object.
    Handles ISO 8601, RFC 2822, and many other formats via dateutil.
    """
    if not dt_string or not isinstance(dt_string, str):
        return None

    try:
        dt_obj = parser.parse(dt_string)
        return dt_obj.astimezone(timezone.utc).replace(tzinfo=None) if dt_obj.tzinfo else dt_obj
    except (ValueError, OverflowError):
        return None


def _make_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensures a datetime object is naive and in UTC."""
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).replace(tzinfo=None) if dt.tzinfo else dt


def _rows_affected(status: str) -> int:
    """Extracts the row count from an asyncpg command tag such as 'UPDATE 1'."""
    try:
        return int(status.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


class DatabaseService:
    """Service for asynchronous database operations with PostgreSQL using asyncpg."""
    _pool: asyncpg.Pool = None

    def __init__(self, pool=None):
        if pool is not None:
            self._pool = pool
        self.insights_table = Config.INSIGHTS_TABLE
        self.reports_table = Config.EXECUTION_REPORTS_TABLE

    @classmethod
    async def create(cls):
        """Asynchronously creates and initializes the DatabaseService."""
        self = cls()
        if not cls._pool:
            try:
                pool_options = {
                    "min_size": 1, "max_size": 5, "statement_cache_size": 0
                }
                if Config.POSTGRES_CONNECTION_STRING:
                    logger.info("Connecting to PostgreSQL using connection string.")
                    cls._pool = await asyncpg.create_pool(dsn=Config.POSTGRES_CONNECTION_STRING, **pool_options)
                else:
                    logger.info("Connecting to PostgreSQL using connection parameters.")
                    cls._pool = await asyncpg.create_pool(
                        host=Config.POSTGRES_HOST, port=Config.POSTGRES_PORT,
                        database=Config.POSTGRES_DB, user=Config.POSTGRES_USER,
                        password=Config.POSTGRES_PASSWORD, **pool_options
                    )
                logger.info("asyncpg connection pool initialized successfully.")
            except Exception as e:
                logger.error(f"Failed to initialize asyncpg connection pool: {e}", exc_info=True)
                raise
        self._pool = cls._pool
        return self

    async def close_pool(self):
        """Closes the connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            self.__class__._pool = None
            logger.info("asyncpg connection pool closed.")

    async def ping(self) -> bool:
        """Runs a trivial query to confirm the pool can reach the database."""
        return await self._pool.fetchval("SELECT 1") == 1

    async def get_industries(self) -> List[str]:
        """Gets the distinct industry keys that have an insight record."""
        query = f'SELECT DISTINCT industry FROM "{self.insights_table}" WHERE industry IS NOT NULL ORDER BY industry'
        records = await self._pool.fetch(query)
        industries = [row['industry'] for row in records]
        logger.info(f"Fetched {len(industries)} industries from {self.insights_table}.")
        return industries

    async def update_industry_insight(self, industry: str, insights: Dict[str, Any],
                                      last_updated: datetime, next_update: datetime) -> int:
        """
        Overwrites the insight fields of one industry row and refreshes its timestamps.

        Raises:
            RecordNotFoundError: if no row exists for ``industry``.
        """
        query = f"""
            UPDATE "{self.insights_table}" SET
                "salaryRanges" = $2::jsonb[],
                "growthRate" = $3,
                "demandLevel" = $4::"DemandLevel",
                "topSkills" = $5::text[],
                "marketOutlook" = $6::"MarketOutlook",
                "keyTrends" = $7::text[],
                "recommendedSkills" = $8::text[],
                "lastUpdated" = $9,
                "nextUpdate" = $10
            WHERE industry = $1
        """
        salary_ranges = [json.dumps(salary_range) for salary_range in insights['salaryRanges']]
        status = await self._pool.execute(
            query,
            industry,
            salary_ranges,
            insights['growthRate'],
            insights['demandLevel'],
            insights['topSkills'],
            insights['marketOutlook'],
            insights['keyTrends'],
            insights['recommendedSkills'],
            _make_naive_utc(last_updated),
            _make_naive_utc(next_update),
        )
        updated = _rows_affected(status)
        if updated == 0:
            raise RecordNotFoundError(f"No insight record found for industry '{industry}'")
        logger.info(f"Updated insights for industry '{industry}'.")
        return updated

    async def create_initial_execution_report(self, trigger: str) -> int:
        query = f"INSERT INTO {self.reports_table} (trigger, start_time, run_status) VALUES ($1, $2, 'RUNNING') RETURNING id"
        try:
            now_naive = datetime.now(timezone.utc).replace(tzinfo=None)
            return await self._pool.fetchval(query, trigger, now_naive)
        except Exception as e:
            logger.error(f"Error creating initial execution report: {e}", exc_info=True)
            return 0

    async def update_execution_report(self, execution_id: int, report_data: Dict[str, Any]) -> bool:
        if not execution_id:
            logger.warning("No execution report to update.")
            return False
        report_data = dict(report_data)
        for field in ['start_time', 'end_time']:
            if field in report_data and (val := report_data[field]):
                report_data[field] = _parse_datetime_string(val) if isinstance(val, str) else _make_naive_utc(val)
        for field in ['error_summary', 'failed_industries']:
            if field in report_data and isinstance(report_data[field], list):
                report_data[field] = json.dumps(report_data[field])
        cols = list(report_data.keys())
        set_clauses = ', '.join(f"{col} = ${i+1}" for i, col in enumerate(cols))
        values = list(report_data.values()) + [execution_id]
        query = f"UPDATE {self.reports_table} SET {set_clauses} WHERE id = ${len(values)}"
        try:
            await self._pool.execute(query, *values)
            logger.info(f"Updated execution report {execution_id}")
            return True
        except Exception as e:
            logger.error(f"Error updating execution report {execution_id}: {e}", exc_info=True)
            return False

    async def get_latest_execution_report(self) -> Optional[Dict[str, Any]]:
        query = f"SELECT * FROM {self.reports_table} ORDER BY start_time DESC LIMIT 1"
        record = await self._pool.fetchrow(query)
        if not record:
            return None
        report = dict(record)
        for field in ['error_summary', 'failed_industries']:
            if isinstance(report.get(field), str):
                try: report[field] = json.loads(report[field])
                except json.JSONDecodeError: pass
        return report
