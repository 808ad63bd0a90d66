"""
Record types shared by ingestion, highlighting, grading and storage.

JSON (API payloads and the persisted store) uses the camelCase field names;
Python code uses the snake_case attributes. Every optional field has a
default so records saved by older revisions still load.
"""
from typing import List, Optional, Literal

from pydantic import BaseModel, ConfigDict, Field

Sentiment = Literal["positive", "negative", "neutral"]
ChatRole = Literal["user", "model"]
WarningKind = Literal["unreadable_file", "no_answers", "student_count", "answer_count"]

DEFAULT_MAX_POINTS = 10


class Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True)


class Question(Record):
    id: str
    text: str = ""
    rubric: str = ""
    keywords: str = ""
    max_points: float = Field(default=DEFAULT_MAX_POINTS, alias="maxPoints")


class Student(Record):
    id: str
    name: str = ""
    answers: List[str] = Field(default_factory=list)

    def answer_for(self, index: int) -> str:
        """Answer at a question position, or "" when the student has none."""
        if 0 <= index < len(self.answers):
            return self.answers[index]
        return ""


class AnalysisSegment(Record):
    id: str = ""
    segment: str
    comment: str = ""
    sentiment: Sentiment = "neutral"


class GradeDocumentInput(Record):
    question: str
    answer: str
    rubric: str = ""
    keywords: Optional[str] = None
    student_id: str = Field(default="", alias="studentId")
    question_id: str = Field(default="", alias="questionId")


class GradeDocumentOutput(Record):
    analysis: List[AnalysisSegment] = Field(default_factory=list)
    overall_feedback: str = Field(default="", alias="overallFeedback")
    score: float = 0


class GradingResult(GradeDocumentOutput):
    highlighted_answer: str = Field(default="", alias="highlightedAnswer")

    def to_output(self) -> GradeDocumentOutput:
        return GradeDocumentOutput(
            analysis=self.analysis,
            overall_feedback=self.overall_feedback,
            score=self.score,
        )


class ChatMessage(Record):
    role: ChatRole
    message: str


class ChatWithDocumentInput(Record):
    document: GradeDocumentInput
    current_analysis: GradeDocumentOutput = Field(alias="currentAnalysis")
    user_message: str = Field(alias="userMessage")
    chat_history: List[ChatMessage] = Field(default_factory=list, alias="chatHistory")


class ChatWithDocumentOutput(Record):
    llm_response: str = Field(alias="llmResponse")
    updated_analysis: GradeDocumentOutput = Field(alias="updatedAnalysis")


class IngestionWarning(Record):
    kind: WarningKind
    source: str = ""
    message: str


class IngestionResult(Record):
    students: List[Student] = Field(default_factory=list)
    warnings: List[IngestionWarning] = Field(default_factory=list)


class AssignmentSummary(Record):
    id: str
    name: str
