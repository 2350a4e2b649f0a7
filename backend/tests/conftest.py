"""
Shared fixtures: a memory-backed app state, an API client wired to it,
and a scripted stand-in for the OpenAI chat client.
"""

import json
import random
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.models.question_models import parse_question
from app.state import build_state, get_state
from app.storage.stores import MemoryBackend


class FakeChatClient:
    """Returns queued replies from ``chat.completions.create`` and records each call."""

    def __init__(self):
        self.replies = []
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def reply_with(self, payload):
        if isinstance(payload, Exception):
            self.replies.append(payload)
        else:
            self.replies.append(payload if isinstance(payload, str) else json.dumps(payload))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_question(qid, category="Grammar", answer="goes", options=("go", "goes", "going"), **extra):
    data = {
        "id": qid,
        "type": extra.pop("type", "MCQ"),
        "question": extra.pop("question", f"Question {qid}"),
        "options": list(options) if options else None,
        "answer": answer,
        "category": category,
    }
    data.update(extra)
    return parse_question(data)


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def state(backend):
    """Fresh state seeded with the starter questions, language EN."""
    st = build_state(backend, rng=random.Random(7))
    st.set_language("EN")
    return st


@pytest.fixture
def client(state):
    from app.main import app

    app.dependency_overrides[get_state] = lambda: state
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def fake_openai(monkeypatch):
    fake = FakeChatClient()
    monkeypatch.setattr("app.utils.question_generation._client", fake)
    return fake


@pytest.fixture
def question_factory():
    return make_question
