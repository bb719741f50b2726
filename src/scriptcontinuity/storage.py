"""Key/value persistence for finished analyses."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError as PydanticValidationError

from scriptcontinuity.analysis.context import MasterContext
from scriptcontinuity.config import get_logger

logger = get_logger(__name__)

CACHE_KEY_PREFIX = "master-context:"


@runtime_checkable
class ContextStore(Protocol):
    """Minimal blob store the cache writes to."""

    def get(self, key: str) -> str | None:
        """Return the stored blob or None."""
        ...

    def set(self, key: str, blob: str) -> None:
        """Store a blob under ``key``, replacing any previous one."""
        ...


class MemoryStore:
    """Dict-backed store for tests and single CLI runs."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, blob: str) -> None:
        self._data[key] = blob

    def __len__(self) -> int:
        return len(self._data)


class DirectoryStore:
    """One JSON file per key inside a directory."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).expanduser()

    def _path(self, key: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
        return self.root / f"{safe}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, blob: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(blob, encoding="utf-8")


def script_key(script_text: str) -> str:
    """Cache key for a script: a prefix plus the SHA-256 of its text."""
    digest = hashlib.sha256(script_text.encode("utf-8")).hexdigest()
    return f"{CACHE_KEY_PREFIX}{digest}"


class ContextCache:
    """Stores master contexts keyed by script content."""

    def __init__(self, store: ContextStore) -> None:
        self.store = store

    def load(self, script_text: str) -> MasterContext | None:
        """Cached context for exactly this script text, if any.

        An unreadable blob is logged and treated as a miss.
        """
        blob = self.store.get(script_key(script_text))
        if blob is None:
            return None
        try:
            return MasterContext.from_dict(json.loads(blob))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            logger.warning(
                "Ignoring unreadable cached context",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    def save(self, script_text: str, context: MasterContext) -> None:
        self.store.set(script_key(script_text), context.to_json(indent=None))
        logger.debug("Cached master context", total_scenes=context.total_scenes)
