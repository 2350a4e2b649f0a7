import logging
import threading
from typing import Iterable, List, Tuple

from pydantic import ValidationError

from app.models.quiz_models import AttemptRecord
from app.storage.stores import Store

logger = logging.getLogger(__name__)


class AttemptHistory:
    """Append-only log of attempt records across every completed session."""

    def __init__(self, store: Store):
        self._store = store
        self._records: List[AttemptRecord] = []
        self._lock = threading.Lock()
        for raw in store.load():
            try:
                self._records.append(AttemptRecord.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping unreadable attempt record: %s", e)

    @property
    def records(self) -> Tuple[AttemptRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def append_batch(self, records: Iterable[AttemptRecord]) -> int:
        batch = list(records)
        with self._lock:
            updated = self._records + batch
            self._store.save([r.model_dump(by_alias=True) for r in updated])
            self._records = updated
        logger.info("Recorded %d attempts (history size %d)", len(batch), len(self._records))
        return len(batch)

    def reset(self) -> None:
        with self._lock:
            self._store.save([])
            self._records = []
        logger.info("Attempt history reset")
