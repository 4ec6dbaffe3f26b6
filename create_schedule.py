#!/usr/bin/env python3
"""
Creates or updates the Cloud Scheduler job that triggers the weekly insight refresh.
"""
import argparse
import json
import logging
import sys

from google.api_core.exceptions import NotFound
from google.cloud import scheduler_v1
from google.protobuf import duration_pb2

from insights.config import Config

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# Cloud Scheduler caps HTTP attempt deadlines at 30 minutes
ATTEMPT_DEADLINE_SECONDS = 1800


def build_scheduler_job(project: str, location: str, job_name: str, worker_url: str, schedule: str,
                        time_zone: str, service_account: str = None) -> scheduler_v1.Job:
    """Builds the HTTP-target job that POSTs to the worker's /run-refresh endpoint."""
    http_target = scheduler_v1.HttpTarget(
        uri=f"{worker_url.rstrip('/')}/run-refresh",
        http_method=scheduler_v1.HttpMethod.POST,
        headers={"Content-Type": "application/json"},
        body=json.dumps({}).encode("utf-8"),
    )
    if service_account:
        http_target.oidc_token = scheduler_v1.OidcToken(service_account_email=service_account,
                                                        audience=worker_url.rstrip('/'))
    return scheduler_v1.Job(
        name=f"projects/{project}/locations/{location}/jobs/{job_name}",
        description="Generate Industry Insights",
        schedule=schedule,
        time_zone=time_zone,
        http_target=http_target,
        attempt_deadline=duration_pb2.Duration(seconds=ATTEMPT_DEADLINE_SECONDS),
    )


def upsert_scheduler_job(client: scheduler_v1.CloudSchedulerClient, job: scheduler_v1.Job) -> scheduler_v1.Job:
    """Updates the job if it exists, otherwise creates it."""
    try:
        updated = client.update_job(job=job)
        logger.info(f"Updated Cloud Scheduler job {job.name}")
        return updated
    except NotFound:
        parent = job.name.rsplit('/jobs/', 1)[0]
        created = client.create_job(parent=parent, job=job)
        logger.info(f"Created Cloud Scheduler job {job.name}")
        return created


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Register the weekly industry insight refresh schedule')
    parser.add_argument('--schedule', default=Config.REFRESH_CRON, help='Cron expression (default: %(default)s)')
    parser.add_argument('--time-zone', default=Config.REFRESH_TIME_ZONE)
    parser.add_argument('--worker-url', default=Config.WORKER_URL)
    args = parser.parse_args(argv)

    try:
        if args.worker_url:
            Config.WORKER_URL = args.worker_url
        Config.validate_schedule()
        job = build_scheduler_job(
            project=Config.GOOGLE_PROJECT_ID,
            location=Config.SCHEDULER_LOCATION,
            job_name=Config.SCHEDULER_JOB_NAME,
            worker_url=Config.WORKER_URL,
            schedule=args.schedule,
            time_zone=args.time_zone,
            service_account=Config.SCHEDULER_SERVICE_ACCOUNT,
        )
        upsert_scheduler_job(scheduler_v1.CloudSchedulerClient(), job)
    except Exception as e:
        logger.error(f"Failed to register schedule: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
