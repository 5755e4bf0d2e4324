"""
Tolerant JSON-object extraction from model completions.

The completion endpoints do not guarantee clean JSON: output may be wrapped in
streaming framing or surrounded by prose. All recovery lives here, as one
ordered chain of named strategies:

1. ``WHOLE``          – the entire trimmed text parses as a JSON object.
2. ``STREAM_PREFIX``  – the first line starting with a recognized stream
                        prefix (``data:`` or ``0:``) parses once the prefix is
                        stripped.
3. ``BRACE_LINE``     – the first line starting with ``{`` parses in isolation.

In every strategy a payload that decodes to a JSON *string* (``0:`` framing
does this) is decoded a second time.

Only JSON objects count as a result. When every strategy fails a
:class:`ResponseParseError` is raised; callers map it to their own fallback.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from codebase_agent.utils.exceptions import ResponseParseError

STREAM_PREFIXES: tuple[str, ...] = ("data:", "0:")


class ParseStrategy(str, Enum):
    WHOLE = "whole"
    STREAM_PREFIX = "stream_prefix"
    BRACE_LINE = "brace_line"


@dataclass(frozen=True)
class ExtractionResult:
    value: dict[str, Any]
    strategy: ParseStrategy


def _load_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None
    if isinstance(value, str):
        # Framed payloads may carry the object as an encoded string
        try:
            value = json.loads(value)
        except (json.JSONDecodeError, TypeError, ValueError):
            return None
    return value if isinstance(value, dict) else None


def _from_whole(text: str) -> dict[str, Any] | None:
    return _load_object(text)


def _from_stream_prefix(text: str) -> dict[str, Any] | None:
    for line in text.splitlines():
        stripped = line.strip()
        for prefix in STREAM_PREFIXES:
            if stripped.startswith(prefix):
                parsed = _load_object(stripped[len(prefix):].strip())
                if parsed is not None:
                    return parsed
    return None


def _from_brace_line(text: str) -> dict[str, Any] | None:
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("{"):
            parsed = _load_object(stripped)
            if parsed is not None:
                return parsed
    return None


_CHAIN = (
    (ParseStrategy.WHOLE, _from_whole),
    (ParseStrategy.STREAM_PREFIX, _from_stream_prefix),
    (ParseStrategy.BRACE_LINE, _from_brace_line),
)


def extract_json_object(text: str | None) -> ExtractionResult:
    """
    Run the fallback chain over ``text``.

    Raises:
        ResponseParseError: No strategy recovered a JSON object.
    """
    clean = (text or "").strip()
    if clean:
        for strategy, attempt in _CHAIN:
            value = attempt(clean)
            if value is not None:
                return ExtractionResult(value=value, strategy=strategy)
    raise ResponseParseError(raw=text or "")


_FENCE_RE = re.compile(r"```[\w+-]*[ \t]*\n?(.*?)```", re.DOTALL)


def strip_fences(text: str) -> str:
    """Remove markdown code fences from model output."""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip("\n")
    return text.strip()
