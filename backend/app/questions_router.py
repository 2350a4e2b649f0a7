# ==== QUESTION BANK ADMINISTRATION (manual entry, sheet import, AI, worksheet scan) ====

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse

from app.bank import DuplicateQuestionError, QuestionNotFoundError, filter_category
from app.models.question_models import (
    InvalidQuestionError,
    QuestionAnalysisRequest,
    QuestionGenerationRequest,
    QuestionInput,
)
from app.schemas.quiz_models import ImportResult, SheetSettingsIn
from app.state import AppState, get_state
from app.utils.messages import t
from app.utils.question_generation import (
    QuestionAnalysisError,
    QuestionGenerationError,
    analyze_question,
    generate_ai_questions,
)
from app.utils.sheets_import import SheetImportError, import_from_sheet
from app.utils.worksheet_scan import UnsupportedWorksheetError, WorksheetScanError, scan_worksheet

logger = logging.getLogger(__name__)

questions_router = APIRouter(prefix="/questions", tags=["questions"])

SHEET_ERROR_MESSAGES = {
    "missing_settings": (400, "missing_sheet_settings"),
    "permission_denied": (502, "sheet_permission_denied"),
    "not_found": (502, "sheet_not_found"),
    "no_data": (422, "sheet_no_data"),
    "no_valid_rows": (422, "sheet_no_valid_rows"),
}


def _invalid(state: AppState, err: Exception) -> HTTPException:
    lang = state.language
    if isinstance(err, DuplicateQuestionError):
        return HTTPException(status_code=409, detail=t(lang, "duplicate_question"))
    return HTTPException(status_code=422, detail=t(lang, "invalid_question", detail=str(err)))


@questions_router.get("")
def list_questions(category: Optional[str] = None, state: AppState = Depends(get_state)):
    return [q.to_record() for q in filter_category(state.bank.questions, category)]


@questions_router.post("")
def add_question(payload: QuestionInput, state: AppState = Depends(get_state)):
    try:
        question = state.bank.add(payload)
    except (InvalidQuestionError, DuplicateQuestionError) as e:
        raise _invalid(state, e)
    return question.to_record()


@questions_router.delete("")
def clear_questions(state: AppState = Depends(get_state)):
    state.bank.clear()
    return {"message": t(state.language, "bank_cleared")}


@questions_router.post("/bulk", response_model=ImportResult)
def append_questions(payload: List[Dict[str, Any]] = Body(...), state: AppState = Depends(get_state)):
    """Add reviewed drafts (e.g. from a worksheet scan). Nothing is added if any item is invalid."""
    try:
        added = state.bank.append_many(payload)
    except (InvalidQuestionError, DuplicateQuestionError) as e:
        raise _invalid(state, e)
    return ImportResult(imported=len(added), message=t(state.language, "sync_success", count=len(added)))


@questions_router.get("/export", response_class=PlainTextResponse)
def export_questions(state: AppState = Depends(get_state)):
    return state.bank.export_tsv()


@questions_router.post("/import/sheets", response_model=ImportResult)
async def import_questions_from_sheet(settings: Optional[SheetSettingsIn] = None, state: AppState = Depends(get_state)):
    """Replace the whole bank with the rows of the configured Google Sheet."""
    lang = state.language
    if settings is not None:
        state.update_sheet_settings(**settings.model_dump())
    current = state.sheet_settings

    try:
        questions = await import_from_sheet(current["apiKey"], current["sheetId"], current["range"])
    except SheetImportError as e:
        logger.warning("Sheet import failed, bank left unchanged: %s", e)
        status, key = SHEET_ERROR_MESSAGES.get(e.reason, (502, None))
        detail = t(lang, key) if key else f"{t(lang, 'sync_error')}\n{e.detail or e.reason}"
        raise HTTPException(status_code=status, detail=detail)

    state.bank.replace_all(questions)
    return ImportResult(
        imported=len(questions),
        message=t(lang, "sync_success", count=len(questions)),
        questions=[q.to_record() for q in questions],
    )


@questions_router.post("/generate", response_model=ImportResult)
def generate_questions(req: QuestionGenerationRequest, state: AppState = Depends(get_state)):
    lang = state.language
    base = filter_category(state.bank.questions, req.category)
    if not base:
        raise HTTPException(status_code=400, detail=t(lang, "no_questions"))

    try:
        generated = generate_ai_questions(base, req.category, req.num_questions)
    except QuestionGenerationError as e:
        raise HTTPException(status_code=502, detail=f"{t(lang, 'ai_error')}\n{e}")

    added = state.bank.append_many(generated)
    return ImportResult(
        imported=len(added),
        message=t(lang, "sync_success", count=len(added)),
        questions=[q.to_record() for q in added],
    )


@questions_router.post("/analyze")
def analyze_draft_question(req: QuestionAnalysisRequest, state: AppState = Depends(get_state)):
    if not req.question.strip():
        raise HTTPException(status_code=400, detail=t(state.language, "invalid_question", detail="question"))
    try:
        return analyze_question(req.question)
    except QuestionAnalysisError as e:
        raise HTTPException(status_code=502, detail=f"{t(state.language, 'analysis_error')}\n{e}")


@questions_router.post("/scan")
async def scan_worksheet_upload(file: UploadFile = File(...), state: AppState = Depends(get_state)):
    """Read a worksheet photo or PDF into draft questions. Drafts are not saved."""
    lang = state.language
    data = await file.read()
    try:
        drafts = await run_in_threadpool(scan_worksheet, data, file.content_type)
    except UnsupportedWorksheetError:
        raise HTTPException(status_code=415, detail=t(lang, "unsupported_file"))
    except WorksheetScanError as e:
        raise HTTPException(status_code=502, detail=f"{t(lang, 'ocr_error')}\n{e}")
    return {"questions": [q.to_record() for q in drafts]}


@questions_router.get("/{question_id}")
def get_question(question_id: str, state: AppState = Depends(get_state)):
    try:
        return state.bank.get(question_id).to_record()
    except QuestionNotFoundError:
        raise HTTPException(status_code=404, detail=t(state.language, "question_not_found"))


@questions_router.put("/{question_id}")
def update_question(question_id: str, payload: QuestionInput, state: AppState = Depends(get_state)):
    try:
        return state.bank.update(question_id, payload).to_record()
    except QuestionNotFoundError:
        raise HTTPException(status_code=404, detail=t(state.language, "question_not_found"))
    except InvalidQuestionError as e:
        raise _invalid(state, e)


@questions_router.delete("/{question_id}")
def delete_question(question_id: str, state: AppState = Depends(get_state)):
    try:
        state.bank.delete(question_id)
    except QuestionNotFoundError:
        raise HTTPException(status_code=404, detail=t(state.language, "question_not_found"))
    return {"deleted": question_id}
