"""
Notification service for insight refresh execution reports.
"""
import html
import smtplib
import logging
import json
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Dict, Any, List, Tuple
from datetime import datetime

import requests

from .config import Config

logger = logging.getLogger(__name__)


def _datetime_serializer(obj):
    """JSON serializer for objects not serializable by default json code"""
    if isinstance(obj, datetime):
        return obj.isoformat()
    raise TypeError(f"Type {type(obj)} not serializable")


class NotificationService:
    """Service for sending notifications about execution reports."""

    def __init__(self):
        self.enabled = Config.NOTIFICATIONS_ENABLED
        self.notification_type = Config.NOTIFICATION_TYPE.lower()
        self.slack_webhook_url = Config.SLACK_WEBHOOK_URL
        self.custom_webhook_url = Config.CUSTOM_WEBHOOK_URL
        self.email_recipients = Config.EMAIL_RECIPIENTS
        self.smtp_server = Config.SMTP_SERVER
        self.smtp_port = Config.SMTP_PORT
        self.smtp_username = Config.SMTP_USERNAME
        self.smtp_password = Config.SMTP_PASSWORD
        self.smtp_from_email = Config.SMTP_FROM_EMAIL

    @staticmethod
    def _summary_fields(report_data: Dict[str, Any]) -> List[Tuple[str, str]]:
        """(label, value) pairs shared by every notification format."""
        def nf(num):
            return f"{num:,}" if isinstance(num, (int, float)) else str(num)

        return [
            ("Status", report_data.get('run_status', 'UNKNOWN')),
            ("Duration", f"{report_data.get('duration_seconds', 0):.2f}s"),
            ("Industries", nf(report_data.get('industries_total', 0))),
            ("Updated", nf(report_data.get('industries_updated', 0))),
            ("Failed", nf(report_data.get('industries_failed', 0))),
            ("Gemini API Calls", nf(report_data.get('api_calls_gemini', 0))),
            ("Total Tokens", nf(report_data.get('gemini_total_tokens', 0))),
        ]

    def _format_slack_message(self, report_data: Dict[str, Any]) -> Dict[str, Any]:
        """Format execution report data for Slack message."""
        status = report_data.get('run_status', 'UNKNOWN')
        color = {'SUCCESS': 'good', 'FAILURE': 'danger', 'RUNNING': 'warning'}.get(status, '#439FE0')
        title = f"Industry Insights Refresh: {status}"
        if status == 'FAILURE':
            title = "[FAILURE] Industry Insights Refresh FAILED"

        fields = [{"title": label, "value": value, "short": True}
                  for label, value in self._summary_fields(report_data)]

        failed_industries = report_data.get('failed_industries')
        if failed_industries:
            fields.append({"title": "Failed Industries", "value": ', '.join(failed_industries)[:1000], "short": False})

        error_summary = report_data.get('error_summary')
        if error_summary:
            error_str = '; '.join(map(str, error_summary))
            fields.append({"title": "Error Summary", "value": f"```{error_str[:1000]}```", "short": False})

        return {
            "attachments": [{"color": color, "title": title, "fields": fields,
                             "footer": "Industry Insights Job", "ts": int(datetime.now().timestamp())}]
        }

    def _format_email_message(self, report_data: Dict[str, Any]) -> str:
        """Format execution report data for email message."""
        items = ''.join(f"<li><strong>{label}:</strong> {html.escape(value)}</li>"
                        for label, value in self._summary_fields(report_data))
        body = f"<h2>Industry Insights Refresh Report</h2><ul>{items}</ul>"

        error_summary = report_data.get('error_summary')
        if error_summary:
            errors = "<br>".join(html.escape(str(error)) for error in error_summary)
            body += f"<h3>Error Summary</h3><p>{errors}</p>"

        return f"<html><body>{body}</body></html>"

    def send_slack_notification(self, report_data: Dict[str, Any]) -> bool:
        """Send notification to Slack."""
        if not self.slack_webhook_url:
            logger.warning("Slack webhook URL not configured")
            return False
        try:
            response = requests.post(self.slack_webhook_url, json=self._format_slack_message(report_data), timeout=30)
            if response.status_code == 200:
                logger.info("Slack notification sent successfully")
                return True
            logger.error(f"Failed to send Slack notification. Status: {response.status_code}, Response: {response.text}")
            return False
        except requests.RequestException as e:
            logger.error(f"Error sending Slack notification: {e}")
            return False

    def send_email_notification(self, report_data: Dict[str, Any]) -> bool:
        """Send notification via email."""
        if not all([self.smtp_server, self.smtp_username, self.smtp_password, self.email_recipients]):
            logger.warning("Email configuration incomplete")
            return False
        try:
            msg = MIMEMultipart('alternative')
            subject_prefix = "[ALERT]" if report_data.get('run_status') == 'FAILURE' else "[INFO]"
            msg['Subject'] = f"{subject_prefix} Industry Insights Refresh Report"
            msg['From'] = self.smtp_from_email or self.smtp_username
            msg['To'] = self.email_recipients
            msg.attach(MIMEText(self._format_email_message(report_data), 'html'))

            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            logger.info("Email notification sent successfully")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email notification: {e}")
            return False

    def send_webhook_notification(self, report_data: Dict[str, Any]) -> bool:
        """Send notification to custom webhook URL."""
        if not self.custom_webhook_url:
            logger.warning("Custom webhook URL not configured")
            return False
        try:
            response = requests.post(
                self.custom_webhook_url,
                data=json.dumps(report_data, default=_datetime_serializer),
                headers={'Content-Type': 'application/json'},
                timeout=30
            )
            if response.status_code in [200, 201, 202]:
                logger.info("Webhook notification sent successfully")
                return True
            logger.error(f"Failed to send webhook notification. Status: {response.status_code}, Response: {response.text}")
            return False
        except requests.RequestException as e:
            logger.error(f"Error sending webhook notification: {e}")
            return False

    def send_notification(self, report_data: Dict[str, Any]) -> bool:
        """Send notification based on configured type."""
        if not self.enabled:
            logger.info("Notifications are disabled")
            return True

        if self.notification_type in ['slack', 'all']:
            self.send_slack_notification(report_data)
        if self.notification_type in ['email', 'all']:
            self.send_email_notification(report_data)
        if self.notification_type in ['webhook', 'all']:
            self.send_webhook_notification(report_data)

        return True
