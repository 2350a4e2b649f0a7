"""Question import from a shared Google Sheet.

Column order (row 1 is usually a header, hence the default range A2:F):
A category, B type, C question, D options (comma separated), E answer,
F explanation. Rows without a question or an answer are skipped.
"""

import logging
from typing import Any, List, Optional, Sequence
from urllib.parse import quote

import httpx

from app import config
from app.bank import new_question_id
from app.models.question_models import InvalidQuestionError, Question, QuestionType, parse_question

logger = logging.getLogger(__name__)

SHEETS_VALUES_URL = "https://sheets.googleapis.com/v4/spreadsheets/{sheet_id}/values/{cell_range}"
SHEET_DEFAULT_CATEGORY = "Uncategorized"


class SheetImportError(Exception):
    """``reason`` is one of: missing_settings, permission_denied, not_found,
    no_data, no_valid_rows, request_failed."""

    def __init__(self, reason: str, detail: Optional[str] = None):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


async def fetch_sheet_values(
    api_key: str,
    sheet_id: str,
    cell_range: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[List[Any]]:
    url = SHEETS_VALUES_URL.format(sheet_id=quote(sheet_id, safe=""), cell_range=quote(cell_range, safe=""))
    try:
        async with httpx.AsyncClient(timeout=config.SHEETS_TIMEOUT, transport=transport) as client:
            response = await client.get(url, params={"key": api_key})
    except httpx.HTTPError as e:
        raise SheetImportError("request_failed", str(e)) from e

    try:
        data = response.json()
    except ValueError:
        raise SheetImportError("request_failed", f"HTTP {response.status_code}: {response.text[:200]}")

    if not isinstance(data, dict):
        raise SheetImportError("request_failed", f"HTTP {response.status_code}: unexpected {type(data).__name__} body")

    error = data.get("error")
    if error:
        status = error.get("status")
        logger.warning("Sheets API error: status=%s message=%s", status, error.get("message"))
        if status == "PERMISSION_DENIED":
            raise SheetImportError("permission_denied", error.get("message"))
        if status == "NOT_FOUND":
            raise SheetImportError("not_found", error.get("message"))
        raise SheetImportError("request_failed", error.get("message") or str(status))
    if response.is_error:
        raise SheetImportError("request_failed", f"HTTP {response.status_code}")

    return data.get("values") or []


def _cell(row: Sequence[Any], idx: int) -> str:
    return str(row[idx]).strip() if idx < len(row) and row[idx] is not None else ""


def rows_to_questions(rows: Sequence[Sequence[Any]]) -> List[Question]:
    questions = []
    for idx, row in enumerate(rows):
        text, answer = _cell(row, 2), _cell(row, 4)
        if not text or not answer:
            continue
        options = _cell(row, 3)
        data = {
            "id": new_question_id("cloud"),
            "category": _cell(row, 0) or SHEET_DEFAULT_CATEGORY,
            "type": _cell(row, 1) or QuestionType.MULTIPLE_CHOICE.value,
            "question": text,
            "options": [o.strip() for o in options.split(",")] if options else None,
            "answer": answer,
            "explanation": _cell(row, 5),
        }
        try:
            questions.append(parse_question(data))
        except InvalidQuestionError as e:
            logger.warning("Skipping sheet row %d: %s", idx + 1, e)
    return questions


async def import_from_sheet(
    api_key: str,
    sheet_id: str,
    cell_range: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[Question]:
    if not api_key or not sheet_id:
        raise SheetImportError("missing_settings")

    rows = await fetch_sheet_values(api_key, sheet_id, cell_range, transport=transport)
    if not rows:
        raise SheetImportError("no_data")

    questions = rows_to_questions(rows)
    if not questions:
        raise SheetImportError("no_valid_rows")
    logger.info("Sheet %s: %d questions from %d rows", sheet_id, len(questions), len(rows))
    return questions
