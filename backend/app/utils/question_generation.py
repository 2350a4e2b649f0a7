import ast
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import openai

from app import config
from app.bank import new_question_id
from app.models.question_models import InvalidQuestionError, Question, parse_question
from app.utils.prompt_templates import build_analysis_prompt, build_generation_prompt

logger = logging.getLogger(__name__)

ANALYSIS_KEYS = ("type", "options", "answer", "explanation", "category")

_client: Optional[openai.OpenAI] = None


class QuestionServiceError(Exception):
    """An AI call failed or returned something unusable. Bank is left untouched."""


class QuestionGenerationError(QuestionServiceError):
    pass


class QuestionAnalysisError(QuestionServiceError):
    pass


def get_client() -> openai.OpenAI:
    global _client
    if _client is None:
        _client = openai.OpenAI(api_key=config.OPENAI_API_KEY)
    return _client


def call_gpt(prompt: str, model: Optional[str] = None, temperature: float = 0.5) -> str:
    resp = get_client().chat.completions.create(
        model=model or config.OPENAI_MODEL,
        messages=[{"role": "user", "content": prompt}],
        temperature=temperature,
        response_format={"type": "json_object"},
    )
    return resp.choices[0].message.content


def unwrap_list(resp_content: str) -> List[Any]:
    """
    Parse JSON (or Python literal). If it's a single question dict, wrap it in a list.
    If it's {'key': [...]}, unwrap that. Otherwise, expect a list.
    """
    try:
        data = json.loads(resp_content)
    except json.JSONDecodeError:
        data = ast.literal_eval(resp_content)

    if isinstance(data, list):
        return data

    if isinstance(data, dict) and "question" in data and "answer" in data:
        return [data]

    if isinstance(data, dict) and len(data) == 1:
        only_val = next(iter(data.values()))
        if isinstance(only_val, list):
            return only_val

    raise ValueError(f"Expected a list of questions, got:\n{data!r}")


def to_questions(items: Sequence[Any], make_id: Callable[[int], str], **overrides: Any) -> List[Question]:
    """Validate model output, dropping items that would not grade correctly."""
    questions = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object item %d: %r", idx, item)
            continue
        data = {**item, **overrides, "id": make_id(idx)}
        try:
            questions.append(parse_question(data))
        except InvalidQuestionError as e:
            logger.warning("Skipping invalid generated question %d: %s", idx, e)
    return questions


def generate_ai_questions(base_questions: Sequence[Question], category: str, num_questions: Optional[int] = None) -> List[Question]:
    num_questions = num_questions or config.AI_QUESTION_COUNT
    base = [
        {k: v for k, v in q.to_record().items() if k not in ("id", "isAI")}
        for q in base_questions[:3]
    ]
    prompt = build_generation_prompt(base, category, num_questions)
    try:
        raw = call_gpt(prompt)
        items = unwrap_list(raw)
    except (openai.OpenAIError, ValueError, SyntaxError) as e:
        logger.error("AI generation failed for category %r: %s", category, e)
        raise QuestionGenerationError(str(e)) from e

    questions = to_questions(items, lambda idx: new_question_id("ai"), isAI=True, category=category)
    if not questions:
        raise QuestionGenerationError("Model returned no usable questions")
    logger.info("Generated %d AI questions for %r (%d returned)", len(questions), category, len(items))
    return questions


def analyze_question(content: str) -> Dict[str, Any]:
    """Suggest metadata for a draft question; only the known keys are returned."""
    try:
        raw = call_gpt(build_analysis_prompt(content))
        data = json.loads(raw)
    except (openai.OpenAIError, ValueError) as e:
        logger.error("Question analysis failed: %s", e)
        raise QuestionAnalysisError(str(e)) from e
    if not isinstance(data, dict):
        raise QuestionAnalysisError(f"Expected a JSON object, got {type(data).__name__}")
    return {k: data[k] for k in ANALYSIS_KEYS if data.get(k) is not None}
