"""
Shared httpx.AsyncClient for plan downloads, report photo fetches and LLM connectivity checks.
Opened in the app lifespan; callers outside the lifespan (scripts, tests) get a lazily created one.
"""
from __future__ import annotations

import httpx

_http_client: httpx.AsyncClient | None = None


def get_http_client() -> httpx.AsyncClient:
    """Return the shared async HTTP client, creating it on first use."""
    if _http_client is None:
        return init_http_client()
    return _http_client


def init_http_client(timeout: float = 30.0) -> httpx.AsyncClient:
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
