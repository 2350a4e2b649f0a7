from fastapi import Depends, FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from typing import List, Optional

from app import config
from app.logger import configure_logging
from app.models.quiz_models import AnswerSubmission, QuizSessionCreateRequest
from app.quiz_session import (
    BlankAnswerError,
    InvalidTransitionError,
    NoQuestionsError,
    QuizSession,
    SessionState,
)
from app.schemas.quiz_models import (
    CategoryAccuracyOut,
    CategoryCount,
    FeedbackView,
    LanguageSetting,
    QuestionView,
    QuizExitOut,
    QuizSessionView,
    SheetSettingsIn,
    SheetSettingsOut,
    StatisticsOut,
)
from app.state import AppState, SessionActiveError, SessionNotFoundError, get_state
from app.stats import chart_rows, compute_statistics, overall_accuracy, today_count, weak_areas
from app.utils.messages import t

configure_logging()

from app.questions_router import questions_router
app = FastAPI(title="Kids English Quiz")
app.include_router(questions_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Routes
@app.get("/", include_in_schema=False)
def root_get():
    return {"ok": True, "service": "kids-english-quiz", "docs": "/docs"}

@app.head("/", include_in_schema=False)
def root_head():
    return Response(status_code=200)

@app.get("/healthz", include_in_schema=False)
def health_get():
    return {"ok": True}


@app.get("/categories", response_model=List[CategoryCount])
def list_categories(state: AppState = Depends(get_state)):
    return [{"category": cat, "count": count} for cat, count in state.bank.categories()]


# ── Quiz sessions ─────────────────────────────────────────────
def session_view(session_id: str, session: QuizSession) -> QuizSessionView:
    view = {
        "session_id": session_id,
        "state": session.state.value,
        "index": session.index,
        "total": session.total,
        "candidate": session.candidate,
        "is_last_question": session.is_last_question,
    }

    if session.state == SessionState.FINISHED:
        view["score"] = session.score
        return QuizSessionView(**view)

    q = session.current_question
    view["question"] = QuestionView(
        question_id=q.id,
        type=q.type,
        question=q.question,
        category=q.category,
        options=list(q.options) if q.options else None,
        free_response=q.is_free_response,
        is_ai=q.is_ai,
    )
    record = session.last_record
    if record is not None:
        # Answer and explanation are only revealed after grading
        view["feedback"] = FeedbackView(
            is_correct=record.is_correct,
            user_answer=record.user_answer,
            correct_answer=q.answer,
            explanation=q.explanation,
        )
    return QuizSessionView(**view)


def _load_session(state: AppState, session_id: str) -> QuizSession:
    try:
        return state.get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail=t(state.language, "session_not_found"))


def _refused(state: AppState, session: QuizSession, err: Exception) -> HTTPException:
    lang = state.language
    if isinstance(err, BlankAnswerError):
        return HTTPException(status_code=400, detail=t(lang, "blank_answer"))
    if session.state == SessionState.FEEDBACK:
        return HTTPException(status_code=409, detail=t(lang, "already_graded"))
    return HTTPException(status_code=409, detail=t(lang, "invalid_action"))


@app.post("/quiz-sessions/", response_model=QuizSessionView)
def create_quiz_session(req: QuizSessionCreateRequest, state: AppState = Depends(get_state)):
    lang = state.language
    if req.num_questions is not None and req.num_questions < 1:
        raise HTTPException(400, "num_questions out of range.")

    try:
        session_id, session = state.start_session(req.category, req.num_questions)
    except NoQuestionsError:
        raise HTTPException(status_code=400, detail=t(lang, "no_questions"))
    except SessionActiveError:
        raise HTTPException(status_code=409, detail=t(lang, "session_active"))

    return session_view(session_id, session)


@app.get("/quiz-sessions/{session_id}", response_model=QuizSessionView)
def get_quiz_session(session_id: str, state: AppState = Depends(get_state)):
    return session_view(session_id, _load_session(state, session_id))


@app.put("/quiz-sessions/{session_id}/answer", response_model=QuizSessionView)
def set_candidate_answer(session_id: str, submission: AnswerSubmission, state: AppState = Depends(get_state)):
    session = _load_session(state, session_id)
    try:
        session.set_answer(submission.answer or "")
    except InvalidTransitionError as e:
        raise _refused(state, session, e)
    return session_view(session_id, session)


@app.post("/quiz-sessions/{session_id}/submit", response_model=QuizSessionView)
def submit_answer(session_id: str, submission: Optional[AnswerSubmission] = None, state: AppState = Depends(get_state)):
    session = _load_session(state, session_id)
    try:
        session.submit(submission.answer if submission else None)
    except (BlankAnswerError, InvalidTransitionError) as e:
        raise _refused(state, session, e)
    return session_view(session_id, session)


@app.post("/quiz-sessions/{session_id}/next", response_model=QuizSessionView)
def next_question(session_id: str, state: AppState = Depends(get_state)):
    session = _load_session(state, session_id)
    try:
        result = session.next()
    except InvalidTransitionError as e:
        raise _refused(state, session, e)

    if result is not None:
        state.record_finished(result)
    return session_view(session_id, session)


@app.post("/quiz-sessions/{session_id}/exit", response_model=QuizExitOut)
def exit_quiz_session(session_id: str, state: AppState = Depends(get_state)):
    session = _load_session(state, session_id)
    finished = session.state == SessionState.FINISHED
    result = session.exit()
    state.end_session(session_id)
    return QuizExitOut(
        session_id=session_id,
        discarded=result.discarded,
        recorded=session.total if finished else 0,
    )


# ── Parent dashboard ──────────────────────────────────────────
@app.get("/stats", response_model=StatisticsOut)
def get_statistics(state: AppState = Depends(get_state)):
    records = state.history.records
    snapshot = compute_statistics(records)
    weak = weak_areas(snapshot)
    return StatisticsOut(
        total_attempted=snapshot.total_attempted,
        correct_count=snapshot.correct_count,
        overall_accuracy=overall_accuracy(snapshot),
        category_accuracy={
            name: {"attempted": s.attempted, "correct": s.correct}
            for name, s in snapshot.category_accuracy.items()
        },
        chart=[CategoryAccuracyOut(**row) for row in chart_rows(snapshot)],
        weak_areas=weak,
        today_count=today_count(records),
        message=None if weak else t(state.language, "great_job"),
    )


@app.delete("/stats/records")
def reset_records(state: AppState = Depends(get_state)):
    state.history.reset()
    return {"message": t(state.language, "records_cleared")}


# ── Settings ──────────────────────────────────────────────────
@app.get("/settings/language", response_model=LanguageSetting)
def get_language(state: AppState = Depends(get_state)):
    return {"language": state.language}


@app.put("/settings/language", response_model=LanguageSetting)
def set_language(req: LanguageSetting, state: AppState = Depends(get_state)):
    return {"language": state.set_language(req.language)}


def _sheet_settings_out(settings) -> SheetSettingsOut:
    # never echo the API key back
    return SheetSettingsOut(sheetId=settings["sheetId"], range=settings["range"], has_api_key=bool(settings["apiKey"]))


@app.get("/settings/sheets", response_model=SheetSettingsOut)
def get_sheet_settings(state: AppState = Depends(get_state)):
    return _sheet_settings_out(state.sheet_settings)


@app.put("/settings/sheets", response_model=SheetSettingsOut)
def update_sheet_settings(req: SheetSettingsIn, state: AppState = Depends(get_state)):
    return _sheet_settings_out(state.update_sheet_settings(**req.model_dump()))
