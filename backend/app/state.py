"""Application state owned by the API process.

The question bank, attempt history and settings each sit behind their own
``Store``; the active quiz session lives only in memory. Routes receive the
state through ``Depends(get_state)`` so tests can swap in a memory-backed one.
"""

import logging
import random
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from app import config
from app.bank import QuestionBank
from app.history import AttemptHistory
from app.quiz_session import Finished, QuizSession, SessionState, start_basic_run
from app.seed import seed_bank
from app.storage.stores import (
    LANGUAGE_KEY,
    QUESTIONS_KEY,
    RECORDS_KEY,
    SHEETS_SETTINGS_KEY,
    BlobBackend,
    Store,
    make_backend,
)
from app.utils.messages import normalize_language

logger = logging.getLogger(__name__)

DEFAULT_SHEET_RANGE = "Sheet1!A2:F"


def _default_sheet_settings() -> Dict[str, str]:
    return {"apiKey": "", "sheetId": "", "range": DEFAULT_SHEET_RANGE}


class SessionActiveError(Exception):
    pass


class SessionNotFoundError(LookupError):
    pass


@dataclass
class AppState:
    bank: QuestionBank
    history: AttemptHistory
    language_store: Store
    sheets_store: Store
    rng: random.Random = field(default_factory=random.Random)
    quiz_size: int = config.QUIZ_SIZE
    session_id: Optional[str] = None
    session: Optional[QuizSession] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def language(self) -> str:
        return normalize_language(self.language_store.load())

    def set_language(self, lang: str) -> str:
        lang = normalize_language(lang)
        self.language_store.save(lang)
        return lang

    @property
    def sheet_settings(self) -> Dict[str, str]:
        settings = _default_sheet_settings()
        settings.update(self.sheets_store.load() or {})
        return settings

    def update_sheet_settings(self, **changes: Any) -> Dict[str, str]:
        settings = self.sheet_settings
        settings.update({k: v for k, v in changes.items() if v is not None})
        self.sheets_store.save(settings)
        return settings

    def start_session(self, category: str, num_questions: Optional[int] = None) -> Tuple[str, QuizSession]:
        with self.lock:
            current = self.session
            if current is not None and not current.closed and current.state != SessionState.FINISHED:
                raise SessionActiveError(self.session_id)

            session = start_basic_run(self.bank.questions, category, rng=self.rng, limit=num_questions or self.quiz_size)
            self.session_id = str(uuid4())
            self.session = session
            return self.session_id, session

    def get_session(self, session_id: str) -> QuizSession:
        with self.lock:
            session = self.session
            if session is None or session_id != self.session_id or session.closed:
                raise SessionNotFoundError(session_id)
            return session

    def record_finished(self, result: Finished) -> int:
        return self.history.append_batch(result.records)

    def end_session(self, session_id: str) -> None:
        with self.lock:
            if session_id == self.session_id:
                self.session = None
                self.session_id = None


def build_state(backend: Optional[BlobBackend] = None, rng: Optional[random.Random] = None) -> AppState:
    backend = backend or make_backend()
    bank_store = Store(backend, QUESTIONS_KEY, list)
    seed_needed = not bank_store.exists()

    bank = QuestionBank(bank_store)
    if seed_needed:
        seed_bank(bank)

    state = AppState(
        bank=bank,
        history=AttemptHistory(Store(backend, RECORDS_KEY, list)),
        language_store=Store(backend, LANGUAGE_KEY, lambda: config.DEFAULT_LANGUAGE),
        sheets_store=Store(backend, SHEETS_SETTINGS_KEY, _default_sheet_settings),
        rng=rng or random.Random(),
    )
    logger.info("State loaded: %d questions, %d attempt records", len(state.bank), len(state.history))
    return state


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = build_state()
    return _state
