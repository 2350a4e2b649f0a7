from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

DEFAULT_CATEGORY = "General"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "MCQ"
    PHRASE_CLOZE = "PHRASE"
    ERROR_DETECTION = "ERROR"
    TRUE_FALSE = "TF"
    SPELLING = "spelling_correction"


class InvalidQuestionError(ValueError):
    """Raised when a question record cannot be accepted into the bank."""
    def __init__(self, message: str, question_id: Optional[str] = None):
        self.question_id = question_id
        self.message = message
        super().__init__(message if not question_id else f"{question_id}: {message}")


def _split_options(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    cleaned = [str(opt).strip() for opt in value]
    return [opt for opt in cleaned if opt] or None


class QuestionBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    type: str = Field(
        QuestionType.MULTIPLE_CHOICE.value,
        description="Open tag; only 'spelling_correction' changes how the question is answered",
    )
    question: str = Field(..., description="Display text, may embed hints like (c___m___)")
    answer: str = Field(..., description="Single correct answer, graded case-insensitively")
    category: str = DEFAULT_CATEGORY
    explanation: Optional[str] = None
    original_text: Optional[str] = None
    is_ai: bool = Field(False, alias="isAI")

    @field_validator("type", mode="before")
    @classmethod
    def _default_type(cls, v):
        if v is None or not str(v).strip():
            return QuestionType.MULTIPLE_CHOICE.value
        return str(v).strip()

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, v):
        if v is None or not str(v).strip():
            return DEFAULT_CATEGORY
        return str(v).strip()

    @field_validator("question")
    @classmethod
    def _question_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("question text must not be blank")
        return v

    @field_validator("answer")
    @classmethod
    def _answer_not_blank(cls, v: str) -> str:
        # Stored trimmed so a padded answer can still be matched after grading trims the input
        if not v.strip():
            raise ValueError("answer must not be blank")
        return v.strip()

    @property
    def is_free_response(self) -> bool:
        return self.options is None

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ChoiceQuestion(QuestionBase):
    options: List[str] = Field(..., min_length=1, description="Fixed options shown to the learner")

    @field_validator("options", mode="before")
    @classmethod
    def _clean_options(cls, v):
        return _split_options(v) or []

    @model_validator(mode="after")
    def _answer_matches_one_option(self):
        if self.type == QuestionType.SPELLING.value:
            raise ValueError("spelling questions take a typed answer, not options")
        matches = [opt for opt in self.options if opt.lower() == self.answer.lower()]
        if len(matches) != 1:
            raise ValueError(
                f"answer {self.answer!r} must match exactly one option "
                f"(found {len(matches)} in {self.options!r})"
            )
        return self


class FreeResponseQuestion(QuestionBase):
    options: None = None

    @field_validator("options", mode="before")
    @classmethod
    def _drop_options(cls, v):
        return None


def _has_options(options: Any) -> bool:
    return bool(_split_options(options)) if isinstance(options, (str, list, tuple)) else False


def _question_kind(value: Any) -> str:
    if isinstance(value, dict):
        qtype, options = value.get("type"), value.get("options")
    else:
        qtype, options = getattr(value, "type", None), getattr(value, "options", None)
    if qtype == QuestionType.SPELLING.value or not _has_options(options):
        return "free"
    return "choice"


Question = Annotated[
    Union[
        Annotated[ChoiceQuestion, Tag("choice")],
        Annotated[FreeResponseQuestion, Tag("free")],
    ],
    Discriminator(_question_kind),
]

_question_adapter = TypeAdapter(Question)


def describe_validation_error(err: ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(p) for p in e["loc"] if p not in ("choice", "free"))
        parts.append(f"{loc}: {e['msg']}" if loc else e["msg"])
    return "; ".join(parts)


def parse_question(data: Any) -> Union[ChoiceQuestion, FreeResponseQuestion]:
    """Validate a raw record (dict or model) into the matching question variant."""
    if isinstance(data, (ChoiceQuestion, FreeResponseQuestion)):
        return data
    try:
        return _question_adapter.validate_python(data)
    except ValidationError as e:
        qid = data.get("id") if isinstance(data, dict) else None
        raise InvalidQuestionError(describe_validation_error(e), question_id=qid) from e


class QuestionInput(BaseModel):
    """Manual entry form; id is generated by the bank when missing."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    type: str = QuestionType.MULTIPLE_CHOICE.value
    question: str
    answer: str
    category: Optional[str] = DEFAULT_CATEGORY
    options: Optional[List[str]] = None
    explanation: Optional[str] = None
    original_text: Optional[str] = None
    is_ai: bool = Field(False, alias="isAI")


class QuestionGenerationRequest(BaseModel):
    category: str
    num_questions: Optional[int] = Field(None, ge=1)


class QuestionAnalysisRequest(BaseModel):
    question: str
