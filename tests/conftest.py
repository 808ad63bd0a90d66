"""
Shared test fixtures for Teacher's Pet.
Every test runs against an in-memory store with fake grading / chat
collaborators. Zero network calls.
"""
import pytest

from teacherspet.models import (
    AnalysisSegment, ChatWithDocumentOutput, GradeDocumentOutput,
)
from teacherspet.services.assignment_store import AssignmentStore, MemoryBackend

ASSIGNMENT_ID = "asg-1700000000000"


class FakeGrader:
    """
    Stand-in for grade_document.
    Marks the first word of each answer positive and scores by answer length.
    Raises on call number `fail_on` (1-based) when set.
    """

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def __call__(self, grade_input):
        self.calls.append(grade_input)
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise RuntimeError("model unavailable")

        words = grade_input.answer.split()
        analysis = []
        if words:
            analysis.append(AnalysisSegment(
                id=f"segment-0-{len(self.calls)}",
                segment=words[0],
                comment="Good start.",
                sentiment="positive",
            ))
        return GradeDocumentOutput(
            analysis=analysis,
            overall_feedback=f"Feedback for {grade_input.student_id}",
            score=min(len(words), 10),
        )


class FakeChat:
    """Stand-in for chat_with_document: always re-grades to a fixed score."""

    def __init__(self, score=7, error=None):
        self.calls = []
        self.score = score
        self.error = error

    def __call__(self, chat_input):
        self.calls.append(chat_input)
        if self.error is not None:
            raise self.error
        return ChatWithDocumentOutput(
            llm_response="Updated the grade.",
            updated_analysis=GradeDocumentOutput(
                analysis=[AnalysisSegment(
                    id="segment-0-99",
                    segment=chat_input.document.answer.split()[0],
                    comment="Revised.",
                    sentiment="negative",
                )],
                overall_feedback="Revised feedback.",
                score=self.score,
            ),
        )


@pytest.fixture
def store():
    """Empty in-memory assignment store."""
    return AssignmentStore(MemoryBackend())


@pytest.fixture
def example_assignment(store):
    """An assignment loaded with the example questions and students."""
    store.set_name(ASSIGNMENT_ID, "Biology Quiz")
    store.load_example(ASSIGNMENT_ID)
    return ASSIGNMENT_ID


@pytest.fixture
def fake_grader():
    return FakeGrader()


@pytest.fixture
def fake_chat():
    return FakeChat()


@pytest.fixture
def app(store, fake_grader, fake_chat):
    from teacherspet.app import create_app
    app = create_app(
        store=store,
        grader=fake_grader,
        chat=fake_chat,
        formatter=lambda text: "Alice\n• Formatted answer",
    )
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
