"""
JSON object extraction from free-text generator replies.

The generation service is not trusted to emit only JSON. Replies arrive
with leading prose, markdown fences, trailing commentary and the
occasional trailing comma. Extractors are strategy objects so a backend
that guarantees JSON output can swap in a strict one without touching
callers.
"""

from __future__ import annotations

import json
import re
from typing import Protocol, runtime_checkable

_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_FENCED_BLOCK = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)


def _try_parse(candidate: str) -> dict | None:
    """Parse candidate as a JSON object, retrying once with trailing commas fixed."""
    for text in (candidate, _TRAILING_COMMA.sub(r"\1", candidate)):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def scan_braces(text: str) -> dict | None:
    """
    Find the first `{` and try a parse at every later `}`.

    Shortest successful candidate wins, so prose with stray braces after
    the object does not swallow it.
    """
    start = text.find("{")
    if start == -1:
        return None
    end = text.find("}", start)
    while end != -1:
        parsed = _try_parse(text[start : end + 1])
        if parsed is not None:
            return parsed
        end = text.find("}", end + 1)
    return None


@runtime_checkable
class JsonExtractor(Protocol):
    """Pulls one JSON object out of a generator reply, or returns None."""

    def extract(self, text: str) -> dict | None:
        ...


class BraceScanExtractor:
    """
    Default extractor for chat-completion replies.

    1. Brace scan from the first opening brace.
    2. Fall back to each fenced code block in order.
    """

    def extract(self, text: str) -> dict | None:
        if not text or not text.strip():
            return None

        parsed = scan_braces(text)
        if parsed is not None:
            return parsed

        for block in _FENCED_BLOCK.findall(text):
            parsed = _try_parse(block.strip()) or scan_braces(block)
            if parsed is not None:
                return parsed
        return None


class StrictJsonExtractor:
    """For backends running in JSON mode: the whole reply must be an object."""

    def extract(self, text: str) -> dict | None:
        try:
            parsed = json.loads(text)
        except (json.JSONDecodeError, TypeError):
            return None
        return parsed if isinstance(parsed, dict) else None


def extract_json_object(text: str) -> dict | None:
    """Convenience wrapper over the default extractor."""
    return BraceScanExtractor().extract(text)
