from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Optional

from ..models.question_model import MCQ


class OptionData(BaseModel):
    option_text: str = ""
    is_correct: bool = False


class OptionRead(OptionData):
    model_config = ConfigDict(from_attributes=True)

    option_id: int
    option_order: int


class QuestionData(BaseModel):
    """
    Schema for validating a question posted to an exam.

    - question_type is stored lower-cased; `mcq` questions must carry at least
      two options with exactly one marked correct.
    - Options sent with non-MCQ questions are dropped.
    """
    question_text: str = Field(..., description="The question prompt.")
    question_type: str = Field(..., description="mcq, descriptive, numerical or another label.")
    difficulty: str = Field(..., description="easy / medium / hard or any free label.")
    marks: int = Field(..., ge=0, description="Marks awarded for this question.")
    explanation: Optional[str] = None
    options: List[OptionData] = Field(default_factory=list)

    @field_validator("question_text", "question_type", "difficulty")
    def not_blank(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Missing required fields")
        return v

    @field_validator("question_type")
    def lower_type(cls, v):
        return v.lower()

    @model_validator(mode="after")
    def validate_options_based_on_type(self):
        if self.question_type != MCQ:
            self.options = []
            return self
        if len(self.options) < 2:
            raise ValueError("MCQ questions need at least two options")
        correct = [o for o in self.options if o.is_correct]
        if len(correct) != 1:
            raise ValueError("MCQ questions must have exactly one correct option")
        return self


class QuestionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: int
    exam_id: int
    question_text: str
    question_type: str
    difficulty: str
    marks: int
    explanation: Optional[str] = None
    options: List[OptionRead] = []
