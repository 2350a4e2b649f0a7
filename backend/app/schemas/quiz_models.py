from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional


class CategoryCount(BaseModel):
    category: str
    count: int


class QuestionView(BaseModel):
    """What the learner sees while answering; the answer stays hidden."""
    question_id: str
    type: str
    question: str
    category: str
    options: Optional[List[str]] = None
    free_response: bool
    is_ai: bool


class FeedbackView(BaseModel):
    is_correct: bool
    user_answer: str
    correct_answer: str
    explanation: Optional[str] = None


class QuizSessionView(BaseModel):
    session_id: str
    state: Literal["answering", "feedback", "finished"]
    index: int
    total: int
    candidate: str = ""
    question: Optional[QuestionView] = None
    feedback: Optional[FeedbackView] = None
    is_last_question: bool = False
    score: Optional[int] = None  # only once finished


class QuizExitOut(BaseModel):
    session_id: str
    discarded: int
    recorded: int = 0


class CategoryAccuracyOut(BaseModel):
    name: str
    attempted: int
    correct: int
    accuracy: int
    weak: bool


class StatisticsOut(BaseModel):
    total_attempted: int
    correct_count: int
    overall_accuracy: int
    category_accuracy: Dict[str, Dict[str, int]]
    chart: List[CategoryAccuracyOut]
    weak_areas: List[str]
    today_count: int = 0
    message: Optional[str] = None


class LanguageSetting(BaseModel):
    language: Literal["EN", "ZH"]


class SheetSettingsIn(BaseModel):
    apiKey: Optional[str] = None
    sheetId: Optional[str] = None
    range: Optional[str] = None


class SheetSettingsOut(BaseModel):
    sheetId: str
    range: str
    has_api_key: bool


class ImportResult(BaseModel):
    imported: int
    message: str
    questions: List[Dict[str, Any]] = Field(default_factory=list)
