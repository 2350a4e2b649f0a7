import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from app.utils.messages import t
from app.utils.sheets_import import SheetImportError


def start(client, category="Grammar", **extra):
    resp = client.post("/quiz-sessions/", json={"category": category, **extra})
    assert resp.status_code == 200, resp.text
    return resp.json()


def answer_current(client, state, view, correct=True):
    answer = state.bank.get(view["question"]["question_id"]).answer if correct else "wrong"
    resp = client.post(f"/quiz-sessions/{view['session_id']}/submit", json={"answer": answer})
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_health(client):
    assert client.get("/healthz").json() == {"ok": True}


def test_categories(client):
    assert client.get("/categories").json() == [
        {"category": "Grammar", "count": 2},
        {"category": "Vocabulary", "count": 3},
    ]


class TestQuizFlow:
    def test_complete_run_is_recorded_once(self, client, state):
        view = start(client)
        assert view["state"] == "answering"
        assert view["total"] == 2
        assert "answer" not in view["question"]
        assert view["feedback"] is None

        view = answer_current(client, state, view)
        assert view["state"] == "feedback"
        assert view["feedback"]["is_correct"] is True
        assert view["feedback"]["correct_answer"]

        view = client.post(f"/quiz-sessions/{view['session_id']}/next").json()
        assert view["index"] == 1
        assert view["is_last_question"] is True

        view = answer_current(client, state, view, correct=False)
        assert view["feedback"]["is_correct"] is False

        view = client.post(f"/quiz-sessions/{view['session_id']}/next").json()
        assert view["state"] == "finished"
        assert view["score"] == 1
        assert len(state.history) == 2

        resp = client.post(f"/quiz-sessions/{view['session_id']}/next")
        assert resp.status_code == 409
        assert len(state.history) == 2

        out = client.post(f"/quiz-sessions/{view['session_id']}/exit").json()
        assert out == {"session_id": view["session_id"], "discarded": 0, "recorded": 2}
        assert len(state.history) == 2

    def test_exit_mid_run_records_nothing(self, client, state):
        view = start(client, "Vocabulary")
        answer_current(client, state, view)

        out = client.post(f"/quiz-sessions/{view['session_id']}/exit").json()
        assert out["discarded"] == 1
        assert out["recorded"] == 0
        assert len(state.history) == 0
        assert client.get(f"/quiz-sessions/{view['session_id']}").status_code == 404

    def test_blank_answer_is_refused(self, client):
        view = start(client)
        sid = view["session_id"]

        resp = client.post(f"/quiz-sessions/{sid}/submit", json={"answer": "   "})
        assert resp.status_code == 400
        assert resp.json()["detail"] == t("EN", "blank_answer")
        assert client.post(f"/quiz-sessions/{sid}/submit").status_code == 400
        assert client.get(f"/quiz-sessions/{sid}").json()["state"] == "answering"

    def test_candidate_answer_then_submit(self, client, state):
        view = start(client)
        sid = view["session_id"]
        answer = state.bank.get(view["question"]["question_id"]).answer

        view = client.put(f"/quiz-sessions/{sid}/answer", json={"answer": answer.upper()}).json()
        assert view["candidate"] == answer.upper()

        view = client.post(f"/quiz-sessions/{sid}/submit").json()
        assert view["feedback"]["is_correct"] is True
        assert view["feedback"]["user_answer"] == answer.upper()

    def test_second_submit_is_refused(self, client, state):
        view = start(client)
        answer_current(client, state, view)
        resp = client.post(f"/quiz-sessions/{view['session_id']}/submit", json={"answer": "goes"})
        assert resp.status_code == 409
        assert resp.json()["detail"] == t("EN", "already_graded")

    def test_only_one_active_session(self, client):
        first = start(client)
        assert client.post("/quiz-sessions/", json={"category": "Grammar"}).status_code == 409
        client.post(f"/quiz-sessions/{first['session_id']}/exit")
        start(client)

    def test_empty_category(self, client):
        resp = client.post("/quiz-sessions/", json={"category": "Phonics"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == t("EN", "no_questions")

    def test_session_size_option(self, client):
        assert start(client, "Vocabulary", num_questions=2)["total"] == 2
        resp = client.post("/quiz-sessions/", json={"category": "Vocabulary", "num_questions": 0})
        assert resp.status_code == 400

    def test_unknown_session(self, client):
        assert client.post("/quiz-sessions/nope/next").status_code == 404


def test_statistics_and_reset(client, state):
    empty = client.get("/stats").json()
    assert empty["total_attempted"] == 0
    assert empty["weak_areas"] == []

    view = start(client)
    view = answer_current(client, state, view, correct=False)
    view = client.post(f"/quiz-sessions/{view['session_id']}/next").json()
    view = answer_current(client, state, view, correct=True)
    client.post(f"/quiz-sessions/{view['session_id']}/next")

    stats = client.get("/stats").json()
    assert stats["total_attempted"] == 2
    assert stats["correct_count"] == 1
    assert stats["overall_accuracy"] == 50
    assert stats["category_accuracy"] == {"Grammar": {"attempted": 2, "correct": 1}}
    assert stats["weak_areas"] == ["Grammar"]
    assert stats["chart"][0]["weak"] is True
    assert stats["message"] is None
    assert stats["today_count"] == 2

    assert client.delete("/stats/records").json()["message"] == t("EN", "records_cleared")
    assert client.get("/stats").json()["total_attempted"] == 0


def test_language_setting(client):
    assert client.get("/settings/language").json() == {"language": "EN"}
    assert client.put("/settings/language", json={"language": "ZH"}).json() == {"language": "ZH"}
    assert client.put("/settings/language", json={"language": "FR"}).status_code == 422
    resp = client.post("/quiz-sessions/", json={"category": "Phonics"})
    assert resp.json()["detail"] == t("ZH", "no_questions")


def test_sheet_settings_never_echo_key(client):
    out = client.put("/settings/sheets", json={"apiKey": "secret", "sheetId": "abc"}).json()
    assert out == {"sheetId": "abc", "range": "Sheet1!A2:F", "has_api_key": True}
    assert "secret" not in client.get("/settings/sheets").text


class TestQuestionAdmin:
    NEW = {"type": "MCQ", "question": "They ____ here.", "options": ["is", "are"], "answer": "are", "category": "Grammar"}

    def test_crud(self, client):
        created = client.post("/questions", json=self.NEW).json()
        qid = created["id"]
        assert qid.startswith("user_")
        assert client.get(f"/questions/{qid}").json()["answer"] == "are"

        updated = client.put(f"/questions/{qid}", json={**self.NEW, "question": "We ____ here."}).json()
        assert updated["question"] == "We ____ here."

        assert client.delete(f"/questions/{qid}").json() == {"deleted": qid}
        assert client.get(f"/questions/{qid}").status_code == 404
        assert client.put(f"/questions/{qid}", json=self.NEW).status_code == 404

    def test_invalid_question(self, client):
        resp = client.post("/questions", json={**self.NEW, "answer": "was"})
        assert resp.status_code == 422
        assert len(client.get("/questions").json()) == 5

    def test_duplicate_id(self, client):
        resp = client.post("/questions", json={**self.NEW, "id": "q_1_1"})
        assert resp.status_code == 409

    def test_list_by_category_and_export(self, client):
        assert len(client.get("/questions", params={"category": "Vocabulary"}).json()) == 3
        tsv = client.get("/questions/export").text
        assert len(tsv.splitlines()) == 5
        assert tsv.splitlines()[1].startswith('"Grammar"\t"MCQ"')

    def test_clear(self, client):
        client.delete("/questions")
        assert client.get("/questions").json() == []
        assert client.get("/categories").json() == []

    def test_bulk_add(self, client):
        drafts = [self.NEW, {"type": "spelling_correction", "question": "(s___n)", "answer": "spoon"}]
        out = client.post("/questions/bulk", json=drafts).json()
        assert out["imported"] == 2
        assert len(client.get("/questions").json()) == 7

        resp = client.post("/questions/bulk", json=[self.NEW, {**self.NEW, "answer": "x"}])
        assert resp.status_code == 422
        assert len(client.get("/questions").json()) == 7


class TestExternalSources:
    def test_sheet_import_replaces_bank(self, client, state, monkeypatch, question_factory):
        seen = {}

        async def fake_import(api_key, sheet_id, cell_range):
            seen.update(api_key=api_key, sheet_id=sheet_id, cell_range=cell_range)
            return [question_factory("cloud_1", category="Phonics")]

        monkeypatch.setattr("app.questions_router.import_from_sheet", fake_import)
        out = client.post("/questions/import/sheets", json={"apiKey": "k", "sheetId": "s"}).json()

        assert out["imported"] == 1
        assert out["message"] == t("EN", "sync_success", count=1)
        assert seen == {"api_key": "k", "sheet_id": "s", "cell_range": "Sheet1!A2:F"}
        assert [q.id for q in state.bank.questions] == ["cloud_1"]

    def test_sheet_import_without_settings(self, client):
        resp = client.post("/questions/import/sheets")
        assert resp.status_code == 400
        assert resp.json()["detail"] == t("EN", "missing_sheet_settings")

    def test_sheet_import_failure_keeps_bank(self, client, state, monkeypatch):
        async def fake_import(api_key, sheet_id, cell_range):
            raise SheetImportError("permission_denied", "denied")

        monkeypatch.setattr("app.questions_router.import_from_sheet", fake_import)
        resp = client.post("/questions/import/sheets", json={"apiKey": "k", "sheetId": "s"})
        assert resp.status_code == 502
        assert resp.json()["detail"] == t("EN", "sheet_permission_denied")
        assert len(state.bank) == 5

    def test_generate_appends_ai_questions(self, client, fake_openai):
        fake_openai.reply_with({"questions": [
            {"type": "MCQ", "question": "He ____ a dog.", "options": ["has", "have"], "answer": "has"},
        ]})
        out = client.post("/questions/generate", json={"category": "Grammar"}).json()
        assert out["imported"] == 1
        assert out["questions"][0]["isAI"] is True
        assert len(client.get("/questions", params={"category": "Grammar"}).json()) == 3

    def test_generate_without_base_questions(self, client, fake_openai):
        resp = client.post("/questions/generate", json={"category": "Phonics"})
        assert resp.status_code == 400
        assert fake_openai.calls == []

    def test_generate_failure(self, client, fake_openai):
        fake_openai.reply_with("garbage!")
        resp = client.post("/questions/generate", json={"category": "Grammar"})
        assert resp.status_code == 502
        assert len(client.get("/questions").json()) == 5

    def test_analyze(self, client, fake_openai):
        fake_openai.reply_with({"type": "TF", "answer": "True", "category": "Grammar"})
        out = client.post("/questions/analyze", json={"question": "Cats are animals."}).json()
        assert out == {"type": "TF", "answer": "True", "category": "Grammar"}

    def test_scan_returns_drafts_only(self, client, fake_openai):
        fake_openai.reply_with({"questions": [
            {"type": "spelling_correction", "question": "(c___m___)", "answer": "cinema", "category": "Vocabulary"},
        ]})
        resp = client.post("/questions/scan", files={"file": ("sheet.jpg", b"\xff\xd8jpeg", "image/jpeg")})
        assert resp.status_code == 200, resp.text
        drafts = resp.json()["questions"]
        assert drafts[0]["id"].startswith("ocr_")
        assert len(client.get("/questions").json()) == 5

    def test_scan_unsupported_file(self, client):
        resp = client.post("/questions/scan", files={"file": ("notes.txt", b"hello", "text/plain")})
        assert resp.status_code == 415


def in_parallel(*calls):
    barrier = threading.Barrier(len(calls))

    def run(call):
        barrier.wait()
        return call()

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        return [f.result() for f in [pool.submit(run, c) for c in calls]]


def test_double_submit_records_one_attempt(client, state):
    view = start(client)
    sid = view["session_id"]

    def slow_clock():
        time.sleep(0.05)
        return int(time.time() * 1000)

    state.session._clock = slow_clock
    submit = lambda: client.post(f"/quiz-sessions/{sid}/submit", json={"answer": "goes"}).status_code

    assert sorted(in_parallel(submit, submit)) == [200, 409]
    assert len(state.session.records) == 1


def test_parallel_starts_open_one_session(state, monkeypatch):
    import app.state as app_state

    real_start = app_state.start_basic_run

    def slow_start(*args, **kwargs):
        time.sleep(0.05)
        return real_start(*args, **kwargs)

    monkeypatch.setattr(app_state, "start_basic_run", slow_start)

    def begin():
        try:
            return state.start_session("Grammar")[0]
        except app_state.SessionActiveError as e:
            return e

    outcomes = in_parallel(begin, begin)
    assert sum(isinstance(o, str) for o in outcomes) == 1
    assert sum(isinstance(o, app_state.SessionActiveError) for o in outcomes) == 1


def test_deleted_question_id_cannot_come_back(client):
    assert client.delete("/questions/q_1_2").status_code == 200
    resp = client.post("/questions", json={
        "id": "q_1_2", "type": "MCQ", "question": "We ____ here.", "options": ["is", "are"], "answer": "are",
    })
    assert resp.status_code == 409


@pytest.mark.parametrize("count", [0, -3])
def test_generate_rejects_bad_count(client, fake_openai, count):
    resp = client.post("/questions/generate", json={"category": "Grammar", "num_questions": count})
    assert resp.status_code == 422
    assert fake_openai.calls == []
