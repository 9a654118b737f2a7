"""
Salvage JSON from free-form LLM replies.

Strategies are tried in order and the first that parses wins:
direct, markdown (fenced block), regex (greedy outermost span), cleaned
(fences and surrounding prose stripped, trailing commas removed).
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Literal

logger = logging.getLogger(__name__)

FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
GREEDY_OBJECT = re.compile(r"\{[\s\S]*\}")
GREEDY_ARRAY = re.compile(r"\[[\s\S]*\]")
TRAILING_COMMA = re.compile(r",\s*([}\]])")

Shape = Literal["object", "array"]


def _direct(text: str, shape: Shape) -> Any:
    return json.loads(text)


def _markdown(text: str, shape: Shape) -> Any:
    match = FENCED_BLOCK.search(text)
    if not match:
        raise ValueError("no fenced block")
    return json.loads(match.group(1).strip())


def _regex(text: str, shape: Shape) -> Any:
    pattern = GREEDY_ARRAY if shape == "array" else GREEDY_OBJECT
    match = pattern.search(text)
    if not match:
        raise ValueError(f"no JSON {shape} span")
    return json.loads(match.group(0))


def _cleaned(text: str, shape: Shape) -> Any:
    open_char, close_char = ("[", "]") if shape == "array" else ("{", "}")
    cleaned = re.sub(r"```json\s*", "", text)
    cleaned = re.sub(r"```\s*", "", cleaned)
    start = cleaned.find(open_char)
    end = cleaned.rfind(close_char)
    if start == -1 or end < start:
        raise ValueError(f"no {open_char}...{close_char} in reply")
    cleaned = TRAILING_COMMA.sub(r"\1", cleaned[start : end + 1]).strip()
    return json.loads(cleaned)


STRATEGIES = (
    ("direct", _direct),
    ("markdown", _markdown),
    ("regex", _regex),
    ("cleaned", _cleaned),
)


def salvage_json(text: str, shape: Shape = "object") -> tuple[Any, str]:
    """Return (parsed value, strategy name). Raises ValueError when every strategy fails."""
    text = (text or "").strip()
    if not text:
        raise ValueError("Empty response from model")
    for name, strategy in STRATEGIES:
        try:
            data = strategy(text, shape)
        except (json.JSONDecodeError, ValueError) as e:
            logger.debug("llm_json: %s parse failed: %s", name, e)
            continue
        logger.info("llm_json: parsed model reply using %s method", name)
        return data, name
    logger.warning("llm_json: all parsing strategies failed (first 500 chars): %s", text[:500])
    raise ValueError("All parsing strategies failed")
