"""Durable key-value blobs addressed by fixed logical names.

The engine never cares where a blob lives. The CLI uses ``JsonFileStore`` (one
JSON file per logical name in a data directory), tests use ``MemoryStore``, and
the HTTP service plugs in a SQLAlchemy-backed store with the same interface.
"""

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

logger = logging.getLogger(__name__)

# Logical blob names
FIELDS = "fields"
GOLDSTANDARD_EXAMPLES = "goldstandardExamples"
PRODUCT_CLAIMS = "productClaims"
ENHANCEMENT_HISTORY = "enhancementHistory"
ENHANCED_PRODUCTS = "enhancedProducts"


class BlobStore(Protocol):
    def load(self, name: str, default: Any = None) -> Any: ...

    def save(self, name: str, value: Any) -> None: ...


class MemoryStore:
    """In-process store. Values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial or {})
        self._lock = Lock()

    def load(self, name: str, default: Any = None) -> Any:
        with self._lock:
            if name not in self._data:
                return copy.deepcopy(default)
            return copy.deepcopy(self._data[name])

    def save(self, name: str, value: Any) -> None:
        with self._lock:
            self._data[name] = copy.deepcopy(value)


class JsonFileStore:
    """Stores each blob as ``{data_dir}/{name}.json``.

    Writes go to a temp file in the same directory and are renamed into
    place, so a crash mid-write never leaves a truncated blob behind.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self._dir = Path(data_dir)
        self._lock = Lock()

    def _path(self, name: str) -> Path:
        return self._dir / f"{name}.json"

    def load(self, name: str, default: Any = None) -> Any:
        path = self._path(name)
        if not path.exists():
            return copy.deepcopy(default)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Blob %s is not valid JSON, using default", path)
            return copy.deepcopy(default)

    def save(self, name: str, value: Any) -> None:
        with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self._dir, prefix=f".{name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(value, f, ensure_ascii=False, indent=2)
                os.replace(tmp, self._path(name))
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        logger.debug("Saved blob %s", name)
