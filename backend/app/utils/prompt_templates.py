import json
from typing import Dict, List

QUESTION_FIELDS_BLOCK = """
    - question: The question text (string). For spelling, embed letter hints like (c___m___).
    - type: one of "MCQ", "PHRASE", "ERROR", "TF", "spelling_correction"
    - options: Array of answer choices for MCQ/TF; omit or null for spelling_correction
    - answer: The single correct answer, copied exactly from one of the options when options exist
    - explanation: Short rationale in English and Traditional Chinese
    - category: Short topic label
"""

WORKSHEET_CATEGORIES = ["Present Simple", "Past Simple", "Prepositions", "Articles", "Pronouns", "Conjunctions"]


def build_generation_prompt(base_questions: List[Dict], category: str, num_questions: int) -> str:
    return f"""
    Based on the following school grammar questions in the category "{category}", generate {num_questions} NEW and DIFFERENT questions.
    Keep the same grammar focus and difficulty level suitable for children.

    Base Questions:
    {json.dumps(base_questions, ensure_ascii=False)}

    Return ONLY a JSON object of the form {{"questions": [...]}} where each item has:
    {QUESTION_FIELDS_BLOCK}
    Use "{category}" as the category of every question.
    """


def build_analysis_prompt(content: str) -> str:
    return f"""
    Analyze this English grammar question for a primary school student: "{content}"
    Provide metadata: type (MCQ, PHRASE, ERROR, TF, spelling_correction), options (if MCQ), answer, explanation (EN+ZH), and category.
    Return ONLY a JSON object with the keys "type", "options", "answer", "explanation", "category".
    """


def build_worksheet_prompt(worksheet_text: str = "") -> str:
    categories = ", ".join(f'"{c}"' for c in WORKSHEET_CATEGORIES)
    source = "this image of an English grammar worksheet" if not worksheet_text else "this English grammar worksheet text"
    prompt = f"""
    Analyze {source}.
    Extract all questions into JSON format.
    Rules:
    1. Identify type: MCQ, TF, ERROR, PHRASE or spelling_correction.
    2. Extract options for MCQ.
    3. Infer correct answer.
    4. Provide explanation in English and Traditional Chinese.
    5. Categorize: {categories}.
    Return ONLY a JSON object of the form {{"questions": [...]}} where each item has:
    {QUESTION_FIELDS_BLOCK}
    """
    if worksheet_text:
        prompt += f'\n    Worksheet text:\n    """\n{worksheet_text}\n    """\n'
    return prompt
