"""Forgiving JSON extraction from free-form service replies."""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from typing import Any

from scriptcontinuity.config import get_logger
from scriptcontinuity.exceptions import ParseError

logger = get_logger(__name__)

_FENCE_OPEN_RE = re.compile(r"^```(?:json|JSON)?[ \t]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?```\s*$")
_TRAILING_COMMA_OBJECT_RE = re.compile(r",\s*}")
_TRAILING_COMMA_ARRAY_RE = re.compile(r",\s*]")
_CLOSERS = {"{": "}", "[": "]"}
_QUOTES = "\"'"


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence, if there is one."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN_RE.sub("", cleaned, count=1)
        cleaned = _FENCE_CLOSE_RE.sub("", cleaned, count=1)
    return cleaned


def balanced_span(text: str, start: int) -> str | None:
    """Return the bracketed span opening at ``start``, or None if unclosed.

    Brackets inside quoted strings are skipped. Mismatched closers end the
    scan without a span.
    """
    stack: list[str] = []
    quote: str | None = None
    escaped = False
    for pos in range(start, len(text)):
        char = text[pos]
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in _QUOTES:
            quote = char
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in "}]":
            if not stack or stack.pop() != char:
                return None
            if not stack:
                return text[start : pos + 1]
    return None


def iter_json_spans(text: str) -> Iterator[str]:
    """Yield balanced ``{...}`` or ``[...]`` spans in order.

    Spans nested inside an earlier yielded span are not yielded again.
    """
    pos = 0
    while pos < len(text):
        if text[pos] in _CLOSERS:
            span = balanced_span(text, pos)
            if span is not None:
                yield span
                pos += len(span)
                continue
        pos += 1


def _double_quote_strings(text: str) -> str:
    """Rewrite single-quoted strings as double-quoted ones.

    Apostrophes inside double-quoted strings are left alone.
    """
    out: list[str] = []
    quote: str | None = None
    escaped = False
    for char in text:
        if quote is None:
            if char in _QUOTES:
                quote = char
                out.append('"')
            else:
                out.append(char)
            continue
        if escaped:
            escaped = False
            out.append(char)
        elif char == "\\":
            escaped = True
            out.append(char)
        elif char == quote:
            quote = None
            out.append('"')
        elif char == '"':
            out.append('\\"')
        else:
            out.append(char)
    return "".join(out)


def repair_json(text: str) -> str:
    """Drop trailing commas and turn single-quoted strings into JSON strings."""
    fixed = _TRAILING_COMMA_OBJECT_RE.sub("}", text)
    fixed = _TRAILING_COMMA_ARRAY_RE.sub("]", fixed)
    return _double_quote_strings(fixed)


def _decode(candidate: str) -> Any:
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as first_error:
        logger.debug(
            "JSON parse failed, trying repaired text",
            error=str(first_error),
            response_preview=candidate[:200],
        )
        return json.loads(repair_json(candidate))


def parse_lenient(text: str | None) -> Any:
    r"""Parse the JSON value embedded in a service reply.

    Replies often wrap the JSON in code fences or explanatory prose. Each
    balanced ``{...}`` or ``[...]`` span is tried in order, first as-is and
    then after ``repair_json``. The first span that decodes wins, so prose
    brackets after the JSON are ignored.

    Args:
        text: Raw completion text

    Returns:
        The decoded object or array

    Raises:
        ParseError: If no JSON span exists or no span decodes

    Example:
        >>> parse_lenient('```json\n{"characters": [],}\n```')
        {'characters': []}
    """
    if not text or not text.strip():
        raise ParseError("Empty response, no JSON to parse")

    cleaned = strip_code_fences(text)
    first: tuple[str, json.JSONDecodeError] | None = None
    for candidate in iter_json_spans(cleaned):
        try:
            return _decode(candidate)
        except json.JSONDecodeError as e:
            if first is None:
                first = (candidate, e)

    if first is None:
        raise ParseError("No valid JSON found in response", text_preview=cleaned)
    candidate, error = first
    raise ParseError(
        f"Invalid JSON in response: {error.msg}",
        text_preview=candidate,
        hint="The service reply was not valid JSON even after repair",
    ) from error
