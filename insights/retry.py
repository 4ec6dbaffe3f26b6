"""
Explicit retry policy for the job's external calls (model inference, database access).
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Tuple, Type

logger = logging.getLogger(__name__)


async def run_step(step_name: str, func: Callable[..., Awaitable[Any]], *args,
                   max_retries: int = 3, initial_delay: float = 2.0,
                   retry_on: Tuple[Type[BaseException], ...] = (Exception,), **kwargs) -> Any:
    """
    Awaits ``func(*args, **kwargs)``, retrying with exponential backoff.

    Only exceptions matching ``retry_on`` are retried; anything else, or the
    last failure once ``max_retries`` attempts are used up, is re-raised.
    """
    max_retries = max(1, max_retries)
    delay = initial_delay
    for attempt in range(max_retries):
        try:
            logger.info(f"Step '{step_name}': attempt {attempt + 1}/{max_retries}")
            return await func(*args, **kwargs)
        except retry_on as e:
            if attempt < max_retries - 1:
                logger.warning(f"Step '{step_name}' failed on attempt {attempt + 1}: {e}. Retrying in {delay}s...")
                await asyncio.sleep(delay)
                delay *= 2
            else:
                logger.error(f"Step '{step_name}' failed after {max_retries} attempts: {e}")
                raise
