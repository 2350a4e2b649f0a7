import pytest

from app.models.question_models import (
    ChoiceQuestion,
    FreeResponseQuestion,
    InvalidQuestionError,
    parse_question,
)


def test_choice_question_with_matching_answer():
    q = parse_question({
        "id": "q1", "type": "MCQ", "question": "She ____ to school.",
        "options": ["go", "goes", "going"], "answer": "goes", "category": "Grammar",
    })
    assert isinstance(q, ChoiceQuestion)
    assert not q.is_free_response
    assert q.options == ["go", "goes", "going"]


def test_spelling_question_is_free_response_even_with_options():
    q = parse_question({
        "id": "q2", "type": "spelling_correction", "question": "(c___m___)",
        "options": ["cinema"], "answer": "cinema",
    })
    assert isinstance(q, FreeResponseQuestion)
    assert q.options is None
    assert q.is_free_response


def test_missing_options_make_free_response():
    q = parse_question({"id": "q3", "type": "TF", "question": "Cats can fly.", "answer": "False", "options": []})
    assert isinstance(q, FreeResponseQuestion)


def test_options_given_as_comma_string():
    q = parse_question({"id": "q4", "question": "Pick", "options": "is, am , are", "answer": "are"})
    assert q.options == ["is", "am", "are"]


def test_defaults_for_type_and_category():
    q = parse_question({"id": "q5", "type": "", "question": "Pick", "options": ["a", "b"], "answer": "b", "category": " "})
    assert q.type == "MCQ"
    assert q.category == "General"


def test_answer_is_stored_trimmed():
    q = parse_question({"id": "q6", "question": "Spell it", "answer": "  spoon "})
    assert q.answer == "spoon"


def test_answer_outside_options_is_rejected():
    with pytest.raises(InvalidQuestionError) as exc:
        parse_question({"id": "bad", "question": "Pick", "options": ["a", "b"], "answer": "c"})
    assert exc.value.question_id == "bad"


def test_answer_matching_two_options_is_rejected():
    with pytest.raises(InvalidQuestionError):
        parse_question({"id": "dup", "question": "Pick", "options": ["Yes", "yes"], "answer": "yes"})


def test_blank_question_or_answer_is_rejected():
    with pytest.raises(InvalidQuestionError):
        parse_question({"id": "b1", "question": "  ", "answer": "x"})
    with pytest.raises(InvalidQuestionError):
        parse_question({"id": "b2", "question": "Spell", "answer": " "})


def test_record_uses_stored_field_names():
    q = parse_question({"id": "ai_1", "question": "Spell", "answer": "cat", "isAI": True})
    record = q.to_record()
    assert record["isAI"] is True
    assert record["options"] is None
    assert parse_question(record) == q
