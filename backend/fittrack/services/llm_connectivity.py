"""
Self-tests for the configured LLM providers.

Each check returns a ConnectivityResult and never raises: failures are
reported in the result so the caller can show them.
"""
from __future__ import annotations

import logging

import httpx

from fittrack.config import settings
from fittrack.schemas.parsing import ConnectivityResult
from fittrack.services.gemini_workout_parser import generate_raw
from fittrack.services.http_client import get_http_client

logger = logging.getLogger(__name__)

PROVIDERS = ("gemini", "openai", "aiml")
PING_PROMPT = 'Say "API connection successful" in JSON format: {"status": "success", "message": "API connection successful"}'


async def _check_chat_completions(provider: str, base_url: str, api_key: str, model: str) -> ConnectivityResult:
    if not api_key:
        return ConnectivityResult(
            success=False, provider=provider, api_key_present=False, error=f"{provider} API key not configured"
        )
    client = get_http_client()
    try:
        resp = await client.post(
            f"{base_url.rstrip('/')}/chat/completions",
            headers={"Authorization": f"Bearer {api_key}"},
            json={
                "model": model,
                "messages": [{"role": "user", "content": PING_PROMPT}],
                "max_tokens": 100,
                "temperature": 0.1,
            },
        )
    except httpx.HTTPError as e:
        logger.warning("llm_connectivity: %s request failed: %s", provider, e)
        return ConnectivityResult(success=False, provider=provider, api_key_present=True, error=str(e) or type(e).__name__)
    logger.info("llm_connectivity: %s status=%s", provider, resp.status_code)
    if resp.status_code >= 400:
        return ConnectivityResult(
            success=False,
            provider=provider,
            api_key_present=True,
            error=f"{provider} API error: {resp.status_code} - {resp.text[:500]}",
        )
    try:
        content = resp.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError):
        content = None
    return ConnectivityResult(
        success=True,
        provider=provider,
        api_key_present=True,
        message=f"{provider} API connection successful" + (f": {content}" if content else ""),
    )


async def check_gemini() -> ConnectivityResult:
    if not settings.google_gemini_api_key:
        return ConnectivityResult(
            success=False, provider="gemini", api_key_present=False, error="Gemini API key not configured"
        )
    try:
        reply = await generate_raw(PING_PROMPT)
    except Exception as e:
        logger.warning("llm_connectivity: gemini request failed: %s", e)
        return ConnectivityResult(success=False, provider="gemini", api_key_present=True, error=str(e) or type(e).__name__)
    return ConnectivityResult(
        success=True, provider="gemini", api_key_present=True, message=f"gemini API connection successful: {reply[:200]}"
    )


async def check_provider(provider: str) -> ConnectivityResult:
    if provider == "gemini":
        return await check_gemini()
    if provider == "openai":
        return await _check_chat_completions(
            "openai", settings.openai_base_url, settings.openai_api_key, settings.openai_test_model
        )
    if provider == "aiml":
        return await _check_chat_completions(
            "aiml", settings.aiml_base_url, settings.aiml_api_key, settings.aiml_test_model
        )
    raise ValueError(f"Unknown provider: {provider}")
