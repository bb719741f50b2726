"""Split long scripts into prompt-sized chunks at scene boundaries."""

from __future__ import annotations

import re

from scriptcontinuity.config import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 60_000
LOOKBACK = 5_000
LOOKAHEAD = 1_000

HEADING_BREAK_RE = re.compile(r"\n\s*\d*\s*(?:INT|EXT)", re.IGNORECASE)


def chunk_script(
    text: str,
    size: int = CHUNK_SIZE,
    lookback: int = LOOKBACK,
    lookahead: int = LOOKAHEAD,
) -> list[str]:
    """Split ``text`` into chunks of roughly ``size`` characters.

    Each cut is moved to the last heading-like line found between
    ``size - lookback`` and ``size + lookahead``; without one the text is cut
    at exactly ``size``. Joining the chunks gives back ``text``.

    Args:
        text: Full script text
        size: Target chunk length
        lookback: How far before ``size`` a heading may be
        lookahead: How far after ``size`` a heading may be

    Returns:
        Chunks in order; a single chunk when ``text`` is short enough
    """
    if len(text) <= size:
        return [text]

    chunks: list[str] = []
    remaining = text
    while remaining:
        if len(remaining) <= size:
            chunks.append(remaining)
            break

        window_start = max(0, size - lookback)
        window = remaining[window_start : size + lookahead]
        breaks = [m.start() for m in HEADING_BREAK_RE.finditer(window)]
        # A cut at 0 would produce an empty chunk and never advance
        breaks = [b for b in breaks if window_start + b > 0]
        cut = window_start + breaks[-1] if breaks else size

        chunks.append(remaining[:cut])
        remaining = remaining[cut:]

    logger.debug("Script split into chunks", chunk_count=len(chunks))
    return chunks
