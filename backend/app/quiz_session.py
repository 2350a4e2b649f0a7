"""Quiz session engine.

A session walks a fixed snapshot of questions one at a time:

    ANSWERING --submit--> FEEDBACK --next--> ANSWERING (more questions)
                                    --next--> FINISHED  (last question)

``exit()`` is allowed from any live state and never hands back records, so only
completed runs reach the attempt history. Completion is reported as a
``Finished`` value returned from ``next()``; the caller owns persistence.
"""

import logging
import random
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple, Union

from app.models.question_models import DEFAULT_CATEGORY, Question
from app.models.quiz_models import AttemptRecord

logger = logging.getLogger(__name__)

BASIC_RUN_SIZE = 10


class SessionState(str, Enum):
    ANSWERING = "answering"
    FEEDBACK = "feedback"
    FINISHED = "finished"


class QuizSessionError(Exception):
    """Base class for refused quiz actions."""


class BlankAnswerError(QuizSessionError):
    pass


class InvalidTransitionError(QuizSessionError):
    pass


class NoQuestionsError(QuizSessionError):
    def __init__(self, category: str):
        self.category = category
        super().__init__(f"No questions in category {category!r}")


@dataclass(frozen=True)
class Finished:
    records: Tuple[AttemptRecord, ...]
    total: int

    @property
    def score(self) -> int:
        return sum(1 for r in self.records if r.is_correct)


@dataclass(frozen=True)
class Exited:
    discarded: int  # graded answers dropped with the session


SessionResult = Union[Finished, Exited]


def grade(user_answer: str, correct_answer: str) -> bool:
    return user_answer.strip().lower() == correct_answer.lower()


def _now_ms() -> int:
    return int(time.time() * 1000)


class QuizSession:
    def __init__(self, questions: Sequence[Question], clock: Optional[Callable[[], int]] = None):
        if not questions:
            raise ValueError("QuizSession needs at least one question")
        self._questions: Tuple[Question, ...] = tuple(questions)
        self._clock = clock or _now_ms
        self._index = 0
        self._candidate = ""
        self._records: List[AttemptRecord] = []
        self._state = SessionState.ANSWERING
        self._closed = False
        self._last_ts = 0
        # submit/next/exit are atomic; routes call them from worker threads
        self._lock = threading.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def index(self) -> int:
        return self._index

    @property
    def total(self) -> int:
        return len(self._questions)

    @property
    def questions(self) -> Tuple[Question, ...]:
        return self._questions

    @property
    def current_question(self) -> Question:
        return self._questions[self._index]

    @property
    def candidate(self) -> str:
        return self._candidate

    @property
    def records(self) -> Tuple[AttemptRecord, ...]:
        return tuple(self._records)

    @property
    def last_record(self) -> Optional[AttemptRecord]:
        if self._state == SessionState.ANSWERING or not self._records:
            return None
        return self._records[-1]

    @property
    def score(self) -> int:
        return sum(1 for r in self._records if r.is_correct)

    @property
    def is_last_question(self) -> bool:
        return self._index + 1 >= len(self._questions)

    def _require(self, *states: SessionState) -> None:
        if self._closed:
            raise InvalidTransitionError("Quiz session is closed")
        if self._state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidTransitionError(f"Action not allowed in state {self._state.value!r} (needs {allowed})")

    def set_answer(self, answer: str) -> None:
        with self._lock:
            self._require(SessionState.ANSWERING)
            self._candidate = answer

    def submit(self, answer: Optional[str] = None) -> AttemptRecord:
        with self._lock:
            self._require(SessionState.ANSWERING)
            candidate = self._candidate if answer is None else answer
            if not candidate.strip():
                raise BlankAnswerError("Answer must not be blank")

            question = self.current_question
            self._candidate = candidate
            # Clock can step back; records within one run stay ordered
            self._last_ts = max(self._last_ts, self._clock())
            record = AttemptRecord(
                timestamp=self._last_ts,
                question_id=question.id,
                is_correct=grade(candidate, question.answer),
                user_answer=candidate,
                category=question.category or DEFAULT_CATEGORY,
            )
            self._records.append(record)
            self._state = SessionState.FEEDBACK
            return record

    def next(self) -> Optional[Finished]:
        with self._lock:
            self._require(SessionState.FEEDBACK)
            if not self.is_last_question:
                self._index += 1
                self._candidate = ""
                self._state = SessionState.ANSWERING
                return None

            self._state = SessionState.FINISHED
        logger.info("Quiz session finished: %d/%d correct", self.score, self.total)
        return Finished(records=tuple(self._records), total=self.total)

    def exit(self) -> Exited:
        with self._lock:
            if self._closed:
                raise InvalidTransitionError("Quiz session is closed")
            self._closed = True
            if self._state == SessionState.FINISHED:
                return Exited(discarded=0)
            discarded = len(self._records)
        logger.info("Quiz session exited early at question %d/%d", self._index + 1, self.total)
        return Exited(discarded=discarded)


def start_basic_run(
    bank: Sequence[Question],
    category: str,
    rng: Optional[random.Random] = None,
    limit: int = BASIC_RUN_SIZE,
) -> QuizSession:
    """Sample up to ``limit`` questions of one category into a new session."""
    filtered = [q for q in bank if (q.category or DEFAULT_CATEGORY) == category]
    if not filtered:
        raise NoQuestionsError(category)
    if limit < 1:
        raise ValueError("limit must be at least 1")

    rng = rng or random.Random()
    selected = rng.sample(filtered, min(limit, len(filtered)))
    logger.info("Starting basic run: category=%r questions=%d of %d", category, len(selected), len(filtered))
    return QuizSession(selected)
