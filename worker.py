# worker.py
"""
Cloud Run worker service that runs the weekly industry insight refresh when Cloud Scheduler calls it.
"""
import json
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException, status
import google.auth
import google.auth.exceptions
import vertexai

from insights.config import Config
from insights.pipeline import InsightRefreshPipeline, InsightRefreshError

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


# Lifespan manager to handle resources
@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.pipeline = None
    logger.info("Worker startup: Initializing pipeline...")
    try:
        try:
            creds, project = google.auth.default()
            if hasattr(creds, 'service_account_email'):
                logger.info(f"Cloud Run is using service account: {creds.service_account_email}")
            else:
                logger.warning("Could not determine service account email from credentials.")
        except google.auth.exceptions.DefaultCredentialsError as auth_error:
            logger.error(f"Google Auth Error: {auth_error}")
        Config.validate()
        vertexai.init(project=Config.GOOGLE_PROJECT_ID, location=Config.GOOGLE_LOCATION)
        app.state.pipeline = await InsightRefreshPipeline.create()
        logger.info("Pipeline initialized successfully.")
    except Exception as e:
        logger.critical(f"Worker pipeline initialization failed: {e}", exc_info=True)
        app.state.pipeline = None

    yield  # Worker is running

    logger.info("Worker shutdown: Cleaning up resources...")
    if app.state.pipeline and app.state.pipeline.db_service:
        await app.state.pipeline.db_service.close_pool()
        logger.info("Database connection pool closed.")


# Initialize the FastAPI app for the worker
app = FastAPI(lifespan=lifespan)


def _get_pipeline() -> InsightRefreshPipeline:
    pipeline = getattr(app.state, 'pipeline', None)
    if not pipeline:
        logger.error("Pipeline not initialized. Cannot process request.")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail="Pipeline service unavailable.")
    return pipeline


@app.get("/health")
async def health():
    """Health check endpoint that also verifies database connectivity."""
    pipeline = _get_pipeline()
    try:
        await pipeline.db_service.ping()
    except Exception as e:
        logger.error(f"Health check failed during database query: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Health check failed: database connection error."
        )
    return {"status": "healthy", "service": "Industry Insights Worker", "database_connection": "ok"}


@app.post("/run-refresh", status_code=status.HTTP_200_OK)
async def run_refresh(request: Request):
    """
    Receives the weekly Cloud Scheduler call and runs the insight refresh.

    The optional JSON body may carry ``industries`` (list of names) and
    ``continue_on_error`` (bool).
    """
    pipeline = _get_pipeline()

    raw_body = await request.body()
    try:
        body = json.loads(raw_body) if raw_body else {}
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON body.")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="JSON body must be an object.")

    industries = body.get('industries')
    if industries is not None and (not isinstance(industries, list)
                                   or not all(isinstance(i, str) for i in industries)):
        raise HTTPException(status_code=400, detail="'industries' must be a list of strings.")

    continue_on_error = body.get('continue_on_error')
    if continue_on_error is not None and not isinstance(continue_on_error, bool):
        raise HTTPException(status_code=400, detail="'continue_on_error' must be a boolean.")

    trigger = "scheduler" if request.headers.get('X-CloudScheduler') else "http"
    logger.info(f"Worker received insight refresh request (trigger={trigger}).")

    try:
        results = await pipeline.refresh_all_insights(
            industries=industries,
            trigger=trigger,
            continue_on_error=continue_on_error,
        )
    except InsightRefreshError as e:
        logger.error(f"Insight refresh failed: {e}", exc_info=True)
        # 500 makes Cloud Scheduler record the attempt as failed
        raise HTTPException(status_code=500, detail={"message": str(e), "errors": e.results.get('errors', [])})

    logger.info("Worker successfully completed insight refresh.")
    return {"status": "success", "execution_id": results["execution_id"], "updated": results["updated"]}


@app.get("/last-run")
async def last_run():
    """Returns the most recent execution report."""
    pipeline = _get_pipeline()
    report = await pipeline.db_service.get_latest_execution_report()
    if not report:
        raise HTTPException(status_code=404, detail="No refresh has run yet.")
    return report
