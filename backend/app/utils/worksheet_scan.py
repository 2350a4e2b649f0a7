import base64
import io
import logging
import time
from typing import List

import openai
import PyPDF2
from PyPDF2.errors import PdfReadError

from app import config
from app.models.question_models import Question
from app.utils.prompt_templates import build_worksheet_prompt
from app.utils.question_generation import QuestionServiceError, call_gpt, get_client, to_questions, unwrap_list
from app.utils.text_cleaning import clean_worksheet_text

logger = logging.getLogger(__name__)

IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")
PDF_TYPES = ("application/pdf", "application/x-pdf")


class WorksheetScanError(QuestionServiceError):
    pass


class UnsupportedWorksheetError(WorksheetScanError):
    pass


def _ocr_ids():
    stamp = int(time.time() * 1000)
    return lambda idx: f"ocr_{stamp}_{idx}"


def _extract_pdf_text(pdf_bytes: bytes) -> str:
    with io.BytesIO(pdf_bytes) as stream:
        reader = PyPDF2.PdfReader(stream)
        return "\n".join((p.extract_text() or "") for p in reader.pages)


def extract_questions_from_image(image_bytes: bytes, mime_type: str = "image/jpeg") -> List[Question]:
    data_url = f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"
    try:
        resp = get_client().chat.completions.create(
            model=config.OPENAI_VISION_MODEL,
            messages=[{
                "role": "user",
                "content": [
                    {"type": "text", "text": build_worksheet_prompt()},
                    {"type": "image_url", "image_url": {"url": data_url}},
                ],
            }],
            temperature=0,
            response_format={"type": "json_object"},
        )
        items = unwrap_list(resp.choices[0].message.content)
    except (openai.OpenAIError, ValueError, SyntaxError) as e:
        logger.error("Worksheet image extraction failed: %s", e)
        raise WorksheetScanError(str(e)) from e
    return to_questions(items, _ocr_ids())


def extract_questions_from_pdf(pdf_bytes: bytes) -> List[Question]:
    try:
        text = clean_worksheet_text(_extract_pdf_text(pdf_bytes))
    except PdfReadError as e:
        raise WorksheetScanError(f"Could not read PDF: {e}") from e
    if not text.strip():
        raise WorksheetScanError("No extractable text (PDF may be a scan; upload a photo instead).")

    try:
        items = unwrap_list(call_gpt(build_worksheet_prompt(text), temperature=0))
    except (openai.OpenAIError, ValueError, SyntaxError) as e:
        logger.error("Worksheet PDF extraction failed: %s", e)
        raise WorksheetScanError(str(e)) from e
    return to_questions(items, _ocr_ids())


def scan_worksheet(data: bytes, content_type: str) -> List[Question]:
    """Draft questions from a worksheet upload, for review before they are added."""
    if content_type in IMAGE_TYPES:
        questions = extract_questions_from_image(data, content_type)
    elif content_type in PDF_TYPES:
        questions = extract_questions_from_pdf(data)
    else:
        raise UnsupportedWorksheetError(f"Unsupported file type: {content_type}")
    logger.info("Worksheet scan produced %d draft questions", len(questions))
    return questions
