"""Flat key/value blob persistence.

Each piece of application state (question bank, attempt records, language,
spreadsheet settings) is one JSON blob that is overwritten in full on every
change. There is no versioning or migration; a blob that fails to parse is
treated as missing.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol

from app import config
from app.db.models import KeyValueBlob
from app.db.session import make_session_factory

logger = logging.getLogger(__name__)

# Blob keys, kept identical to the browser storage keys of the first version
QUESTIONS_KEY = "ge_questions"
RECORDS_KEY = "ge_records"
LANGUAGE_KEY = "ge_lang"
SHEETS_SETTINGS_KEY = "ge_cloud_settings"


class BlobBackend(Protocol):
    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, text: str) -> None: ...


class MemoryBackend:
    def __init__(self) -> None:
        self._blobs: Dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def write(self, key: str, text: str) -> None:
        self._blobs[key] = text


class JsonFileBackend:
    """One ``<key>.json`` file per blob under ``data_dir``."""

    def __init__(self, data_dir: str) -> None:
        self._dir = Path(data_dir)
        self._dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self._dir / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, text: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, path)


class SqlBackend:
    """Blobs as rows of the ``kv_blobs`` table (SQLite by default)."""

    def __init__(self, database_url: Optional[str] = None) -> None:
        self._session_factory = make_session_factory(database_url)

    def read(self, key: str) -> Optional[str]:
        with self._session_factory() as db:
            row = db.get(KeyValueBlob, key)
            return row.value if row else None

    def write(self, key: str, text: str) -> None:
        with self._session_factory() as db:
            db.merge(KeyValueBlob(key=key, value=text))
            db.commit()


class Store:
    """``load()`` / ``save(value)`` over a single blob key."""

    def __init__(self, backend: BlobBackend, key: str, default: Callable[[], Any]) -> None:
        self._backend = backend
        self.key = key
        self._default = default

    def exists(self) -> bool:
        return self._backend.read(self.key) is not None

    def load(self) -> Any:
        raw = self._backend.read(self.key)
        if raw is None:
            return self._default()
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored blob %r is not valid JSON; starting from default", self.key)
            return self._default()

    def save(self, value: Any) -> None:
        self._backend.write(self.key, json.dumps(value, ensure_ascii=False))


def make_backend(kind: Optional[str] = None) -> BlobBackend:
    kind = (kind or config.STORE_BACKEND).lower()
    if kind == "memory":
        return MemoryBackend()
    if kind == "json":
        return JsonFileBackend(config.DATA_DIR)
    if kind == "sql":
        return SqlBackend(config.DATABASE_URL)
    raise ValueError(f"Unknown STORE_BACKEND {kind!r} (expected json, sql or memory)")
