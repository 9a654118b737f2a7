"""
Gemini call wrapper: blocking generate_content runs in the threadpool with a timeout.
Rate-limit and server errors (429, 5xx) are retried with exponential backoff.
"""
from __future__ import annotations

import asyncio
import logging
import re

from starlette.concurrency import run_in_threadpool

from fittrack.config import settings

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
RETRYABLE_STATUS_PATTERN = re.compile(r"\b(429|5\d{2})\b")


def is_retryable_error(exc: BaseException | None) -> bool:
    """True if the exception message carries a 429 or 5xx status."""
    if exc is None:
        return False
    msg = getattr(exc, "message", None) or str(exc)
    return bool(RETRYABLE_STATUS_PATTERN.search(msg))


def response_text(response) -> str:
    """Text of a generate_content response; empty string when the model returned no parts."""
    try:
        return (response.text or "").strip()
    except ValueError:
        # Blocked or empty candidates raise on .text
        logger.warning("Gemini response had no text parts")
        return ""


async def run_generate_content(model, contents):
    """Run model.generate_content(contents) off the event loop, with timeout and retry."""
    timeout = float(settings.gemini_request_timeout_seconds or 90)
    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            return await asyncio.wait_for(
                run_in_threadpool(model.generate_content, contents),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Gemini request timed out after %ss (attempt %d)", timeout, attempt)
            if attempt == MAX_ATTEMPTS:
                raise
        except Exception as e:
            if attempt == MAX_ATTEMPTS or not is_retryable_error(e):
                raise
            logger.warning("Gemini request failed (attempt %d): %s", attempt, e)
        await asyncio.sleep(2 ** (attempt - 1))
    raise RuntimeError("run_generate_content: unexpected exit")
