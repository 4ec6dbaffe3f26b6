#!/usr/bin/env python3
"""
Command-line interface for running the industry insight refresh once.
"""
import argparse
import asyncio
import logging
import sys

import vertexai

from insights.config import Config
from insights.pipeline import InsightRefreshPipeline, InsightRefreshError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Regenerate industry insights with Gemini and store them')
    parser.add_argument(
        '--industry', '-i',
        action='append',
        dest='industries',
        help='Only refresh this industry (repeatable). Defaults to every stored industry.'
    )
    parser.add_argument(
        '--continue-on-error',
        action='store_true',
        default=None,
        help='Keep processing remaining industries when one fails'
    )
    return parser


async def main(argv=None):
    """Main asynchronous entry point for the command-line interface."""
    args = build_parser().parse_args(argv)

    pipeline = None
    exit_code = 0
    try:
        Config.validate()
        logger.info(f"Initializing Vertex AI for project: {Config.GOOGLE_PROJECT_ID}")
        vertexai.init(project=Config.GOOGLE_PROJECT_ID, location=Config.GOOGLE_LOCATION)

        pipeline = await InsightRefreshPipeline.create(continue_on_error=args.continue_on_error)
        results = await pipeline.refresh_all_insights(industries=args.industries, trigger="cli")
        logger.info(f"Insights refreshed for {len(results['updated'])} industries.")
    except InsightRefreshError as e:
        logger.error(f"Insight refresh failed. Errors: {e.results.get('errors')}")
        exit_code = 1
    except Exception as e:
        logger.error(f"An unexpected error occurred: {e}", exc_info=True)
        exit_code = 1
    finally:
        if pipeline and pipeline.db_service:
            await pipeline.db_service.close_pool()
    return exit_code


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
