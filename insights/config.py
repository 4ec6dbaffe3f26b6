"""
Configuration management for the Industry Insights refresh job.
"""
import logging
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


class Config:
    """Application configuration."""

    # PostgreSQL Configuration
    POSTGRES_HOST = os.getenv('POSTGRES_HOST', 'localhost')
    POSTGRES_PORT = int(os.getenv('POSTGRES_PORT', '5432'))
    POSTGRES_DB = os.getenv('POSTGRES_DB', 'career_coach')
    POSTGRES_USER = os.getenv('POSTGRES_USER', 'postgres')
    POSTGRES_PASSWORD = os.getenv('POSTGRES_PASSWORD')

    # Transaction Pooler Connection String (for PgBouncer, RDS Proxy, etc.)
    POSTGRES_CONNECTION_STRING = os.getenv('POSTGRES_CONNECTION_STRING') or os.getenv('DATABASE_URL')
    INSIGHTS_TABLE = os.getenv('INSIGHTS_TABLE', 'IndustryInsight')
    EXECUTION_REPORTS_TABLE = os.getenv('EXECUTION_REPORTS_TABLE', 'insight_execution_reports')

    # Google AI Configuration
    GOOGLE_PROJECT_ID = os.getenv('GOOGLE_PROJECT_ID')
    GOOGLE_LOCATION = os.getenv('GOOGLE_LOCATION', 'us-central1')
    GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-1.5-flash')
    GEMINI_API_TIMEOUT = int(os.getenv('GEMINI_API_TIMEOUT', '90'))

    # Retry policy for the model call and the storage write
    AI_MAX_RETRIES = int(os.getenv('AI_MAX_RETRIES', '3'))
    DB_MAX_RETRIES = int(os.getenv('DB_MAX_RETRIES', '3'))
    RETRY_INITIAL_DELAY = float(os.getenv('RETRY_INITIAL_DELAY', '2'))

    # When false, the first failing industry aborts the whole batch
    CONTINUE_ON_ERROR = os.getenv('CONTINUE_ON_ERROR', 'false').lower() == 'true'

    # Scheduling (Cloud Scheduler -> worker)
    REFRESH_CRON = os.getenv('REFRESH_CRON', '0 0 * * 0')  # Every Sunday at midnight
    REFRESH_TIME_ZONE = os.getenv('REFRESH_TIME_ZONE', 'Etc/UTC')
    SCHEDULER_LOCATION = os.getenv('SCHEDULER_LOCATION', GOOGLE_LOCATION)
    SCHEDULER_JOB_NAME = os.getenv('SCHEDULER_JOB_NAME', 'generate-industry-insights')
    SCHEDULER_SERVICE_ACCOUNT = os.getenv('SCHEDULER_SERVICE_ACCOUNT')
    WORKER_URL = os.getenv('WORKER_URL')
    PORT = int(os.getenv('PORT', '8080'))

    # Notification Configuration
    NOTIFICATIONS_ENABLED = os.getenv('NOTIFICATIONS_ENABLED', 'false').lower() == 'true'
    NOTIFICATION_TYPE = os.getenv('NOTIFICATION_TYPE', 'none').lower()  # 'slack', 'email', 'webhook', 'all', 'none'

    # Slack Configuration
    SLACK_WEBHOOK_URL = os.getenv('SLACK_WEBHOOK_URL')

    # Custom Webhook Configuration
    CUSTOM_WEBHOOK_URL = os.getenv('CUSTOM_WEBHOOK_URL')

    # Email Configuration
    EMAIL_RECIPIENTS = os.getenv('EMAIL_RECIPIENTS')  # Comma-separated list
    SMTP_SERVER = os.getenv('SMTP_SERVER')
    SMTP_PORT = int(os.getenv('SMTP_PORT', '587'))
    SMTP_USERNAME = os.getenv('SMTP_USERNAME')
    SMTP_PASSWORD = os.getenv('SMTP_PASSWORD')
    SMTP_FROM_EMAIL = os.getenv('SMTP_FROM_EMAIL')

    # Validation
    @classmethod
    def validate(cls):
        """Validate that all required environment variables are set."""
        if cls.POSTGRES_CONNECTION_STRING:
            required_vars = ['GOOGLE_PROJECT_ID']
        else:
            required_vars = ['POSTGRES_PASSWORD', 'GOOGLE_PROJECT_ID']

        missing_vars = []
        for var in required_vars:
            if not getattr(cls, var):
                missing_vars.append(var)

        if missing_vars:
            raise ValueError(f"Missing required environment variables: {', '.join(missing_vars)}")

        return True

    @classmethod
    def validate_schedule(cls):
        """Validate the settings needed to register the weekly schedule."""
        missing_vars = [var for var in ['GOOGLE_PROJECT_ID', 'WORKER_URL'] if not getattr(cls, var)]
        if missing_vars:
            raise ValueError(f"Missing required environment variables: {', '.join(missing_vars)}")
        return True
