import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
from uuid import uuid4

from pydantic import BaseModel

from app.models.question_models import DEFAULT_CATEGORY, InvalidQuestionError, Question, parse_question
from app.storage.stores import Store

logger = logging.getLogger(__name__)


class DuplicateQuestionError(ValueError):
    pass


class QuestionNotFoundError(LookupError):
    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Question not found: {question_id}")


def new_question_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:12]}"


def _as_dict(item: Any) -> Dict[str, Any]:
    if isinstance(item, BaseModel):
        return item.model_dump(by_alias=True)
    return dict(item)


class QuestionBank:
    """Ordered question collection; the whole list is saved after every change.

    Ids removed by delete, clear or replace are retired for the life of the
    bank object, so old attempt records never point at a different question.
    """

    def __init__(self, store: Store):
        self._store = store
        self._questions: List[Question] = self._load()
        self._retired: Set[str] = set()
        self._lock = threading.Lock()

    def _load(self) -> List[Question]:
        questions = []
        for raw in self._store.load():
            try:
                questions.append(parse_question(raw))
            except InvalidQuestionError as e:
                logger.warning("Skipping stored question that no longer validates: %s", e)
        return questions

    def _commit(self, questions: List[Question]) -> None:
        # memory only changes once the blob is written
        self._store.save([q.to_record() for q in questions])
        self._questions = questions

    def _retire(self, removed: Iterable[Question]) -> None:
        self._retired.update(q.id for q in removed)

    @property
    def questions(self) -> Tuple[Question, ...]:
        return tuple(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def get(self, question_id: str) -> Question:
        for q in self._questions:
            if q.id == question_id:
                return q
        raise QuestionNotFoundError(question_id)

    def categories(self) -> List[Tuple[str, int]]:
        counts: Dict[str, int] = {}
        for q in self._questions:
            cat = q.category or DEFAULT_CATEGORY
            counts[cat] = counts.get(cat, 0) + 1
        return sorted(counts.items())

    def _validate_batch(self, items: Iterable[Any], prefix: str, existing: Iterable[str]) -> List[Question]:
        taken = set(existing)
        validated = []
        for item in items:
            data = _as_dict(item)
            if not data.get("id"):
                data["id"] = new_question_id(prefix)
            question = parse_question(data)
            if question.id in taken:
                raise DuplicateQuestionError(f"Duplicate question id: {question.id}")
            if question.id in self._retired:
                raise DuplicateQuestionError(f"Question id was deleted and cannot be reused: {question.id}")
            taken.add(question.id)
            validated.append(question)
        return validated

    def add(self, item: Any) -> Question:
        with self._lock:
            (question,) = self._validate_batch([item], "user", (q.id for q in self._questions))
            self._commit(self._questions + [question])
        return question

    def update(self, question_id: str, item: Any) -> Question:
        data = _as_dict(item)
        data["id"] = question_id
        question = parse_question(data)
        with self._lock:
            for i, q in enumerate(self._questions):
                if q.id == question_id:
                    updated = list(self._questions)
                    updated[i] = question
                    self._commit(updated)
                    return question
        raise QuestionNotFoundError(question_id)

    def delete(self, question_id: str) -> None:
        with self._lock:
            remaining = [q for q in self._questions if q.id != question_id]
            if len(remaining) == len(self._questions):
                raise QuestionNotFoundError(question_id)
            removed = [q for q in self._questions if q.id == question_id]
            self._commit(remaining)
            self._retire(removed)

    def clear(self) -> None:
        with self._lock:
            removed = self._questions
            self._commit([])
            self._retire(removed)
        logger.info("Question bank cleared")

    def append_many(self, items: Iterable[Any], prefix: str = "user") -> List[Question]:
        """Additive import (AI generation, worksheet scan). All-or-nothing."""
        with self._lock:
            added = self._validate_batch(items, prefix, (q.id for q in self._questions))
            self._commit(self._questions + added)
        logger.info("Appended %d questions to the bank", len(added))
        return added

    def replace_all(self, items: Iterable[Any], prefix: str = "user") -> List[Question]:
        """Full replace (spreadsheet import, seeding). All-or-nothing."""
        with self._lock:
            replacement = self._validate_batch(items, prefix, ())
            kept = {q.id for q in replacement}
            removed = [q for q in self._questions if q.id not in kept]
            self._commit(replacement)
            self._retire(removed)
        logger.info("Replaced question bank with %d questions", len(replacement))
        return replacement

    def export_tsv(self) -> str:
        """Tab-separated, quoted rows in the spreadsheet column order A..F."""
        rows = []
        for q in self._questions:
            fields = [
                q.category,
                q.type,
                q.question,
                ", ".join(q.options) if q.options else "",
                q.answer,
                q.explanation or "",
            ]
            rows.append("\t".join('"' + str(f).replace('"', '""') + '"' for f in fields))
        return "\n".join(rows)


def filter_category(questions: Iterable[Question], category: Optional[str]) -> List[Question]:
    if not category:
        return list(questions)
    return [q for q in questions if (q.category or DEFAULT_CATEGORY) == category]
