from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class AttemptRecord(BaseModel):
    """One graded answer. Category is copied from the question at answer time."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    timestamp: int  # epoch milliseconds
    question_id: str = Field(..., alias="questionId")
    is_correct: bool = Field(..., alias="isCorrect")
    user_answer: str = Field(..., alias="userAnswer")  # verbatim, untrimmed
    category: str


class QuizSessionCreateRequest(BaseModel):
    category: str
    num_questions: Optional[int] = None


class AnswerSubmission(BaseModel):
    answer: Optional[str] = None
