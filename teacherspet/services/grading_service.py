"""
Grading Service
===============

AI grading of student answers, chat-based refinement of a grade, and the
grading pass over a whole assignment.

The model calls (grade_document, chat_with_document, format_answers and the
free-text formatters apply_semantic_formatting / apply_style) are
plain functions; the workflow functions take them as parameters so the
HTTP layer and tests can swap in other collaborators.

Grading pass:
1. Clears every previous result for the assignment
2. Grades each (question, student) pair one after the other
3. Stores each result (with highlighted answer) as soon as it arrives
4. Stops at the first failure, keeping the pairs already graded
"""
import time
import logging
from typing import Callable, List, Literal, Optional

from pydantic import BaseModel

from teacherspet.models import (
    AnalysisSegment, ChatMessage, ChatWithDocumentInput, ChatWithDocumentOutput,
    GradeDocumentInput, GradeDocumentOutput, GradingResult,
)
from teacherspet.services.highlighter import reconcile
from teacherspet.services.llm_client import generate_structured

logger = logging.getLogger(__name__)


# =============================================================================
# STRUCTURED MODEL RESPONSES
# =============================================================================

class SegmentResponse(BaseModel):
    segment: str
    comment: str
    sentiment: Literal["positive", "negative", "neutral"]


class GradeResponse(BaseModel):
    analysis: List[SegmentResponse]
    overall_feedback: str
    score: float


class ChatResponse(BaseModel):
    llm_response: str
    updated_analysis: GradeResponse


class FormatResponse(BaseModel):
    formatted_text: str


# =============================================================================
# PROMPTS
# =============================================================================

GRADE_PROMPT = """You are an expert teaching assistant. Your task is to grade a student's answer based on a given question and rubric. The rubric includes a total possible score.

First, analyze the provided answer and identify key segments that directly relate to the rubric and question. Each segment MUST be copied word for word from the student's answer. For each segment, provide a comment explaining its significance and how it meets (or fails to meet) the rubric.

For each segment, also determine the sentiment of your feedback:
- 'positive' if the segment is correct, well-explained, or aligns with the rubric.
- 'negative' if the segment is inaccurate, misses key points, or contradicts the rubric.
- 'neutral' for general observations that are neither strictly positive nor negative.

After analyzing all segments, provide overall feedback on the answer.

Finally, based on your analysis and the rubric, determine a score for the student's answer. The score should be an integer.

**Question:**
{question}

**Grading Rubric:**
{rubric}
{keywords_section}
**Student's Answer:**
{answer}
"""

CHAT_PROMPT = """You are a teaching assistant chatbot. The user has provided a question, a rubric, and an answer, which you have already graded.
The user now wants to discuss and refine your analysis.

**Original Context:**
- Question: {question}
- Rubric: {rubric}
- Answer: {answer}
{keywords_line}
**Current Analysis You Provided:**
- Score: {score}
- Overall Feedback: "{overall_feedback}"
- Segment Analysis:
{segments}

**Conversation History:**
{history}

**User's New Message:**
"{user_message}"

**Your Instructions:**
1. Directly address the user's message in the 'llm_response' field. Acknowledge their feedback.
2. Re-evaluate the answer and return a complete analysis in the 'updated_analysis' field.
   - If the message does not require a change in the grading (e.g., it is just a question), return the current analysis unchanged.
   - Otherwise create a new analysis from scratch. It must be complete, not a partial update.
   - Segments must be copied word for word from the answer. Keep comments concise.
"""

FORMAT_PROMPT = """You are a text formatting expert. Your task is to reformat the provided text into a specific structure.

The text might be messy. It contains student names and their answers. Identify each student and their corresponding answers and format them as follows:

- Each student's name should be on its own line.
- Each answer for that student should be on a new line immediately following the name, prefixed with a "•" (bullet point) and a space.
- There should be a blank line between each student's block of answers.

**Example Input:**
"Alice Smith Q1: Photosynthesis is... Answer 2: Mitochondria are... Bob Jones, his first answer is that plants make food. And the second one is that mitochondria make energy."

**Example Output:**
Alice Smith
• Photosynthesis is...
• Mitochondria are...

Bob Jones
• his first answer is that plants make food.
• And the second one is that mitochondria make energy.

Now, please format the following text:

{raw_text}
"""

SEMANTIC_FORMAT_PROMPT = """You are an AI expert in text formatting. You will receive text as input, and you will return a formatted version of that text based on its semantic content.

The user has selected the "{style}" style, so format the document accordingly.

Original Text: {text}
"""

APPLY_STYLE_PROMPT = """You are a document formatting expert. Please apply the following style to the text provided.

Style: {style}

Text: {text}

Formatted Text:"""

STYLE_OPTIONS = ["Document", "Report", "Email", "Blog Post", "Formal Letter"]
DEFAULT_STYLE = "document"


# =============================================================================
# MODEL CALLS
# =============================================================================

def assign_segment_ids(analysis: List[AnalysisSegment], timestamp_ms: Optional[int] = None) -> List[AnalysisSegment]:
    """
    Give each segment the id "segment-{index}-{timestamp}".

    Ids are assigned here rather than trusted from the model. Two analyses
    produced in the same millisecond share ids; that is accepted.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return [
        item.model_copy(update={"id": f"segment-{index}-{timestamp_ms}"})
        for index, item in enumerate(analysis)
    ]


def _to_output(response: GradeResponse) -> GradeDocumentOutput:
    analysis = [
        AnalysisSegment(segment=s.segment, comment=s.comment, sentiment=s.sentiment)
        for s in response.analysis
    ]
    return GradeDocumentOutput(
        analysis=assign_segment_ids(analysis),
        overall_feedback=response.overall_feedback,
        score=response.score,
    )


def grade_document(grade_input: GradeDocumentInput, model: Optional[str] = None) -> GradeDocumentOutput:
    """Grade one answer against its question and rubric."""
    keywords_section = ''
    if grade_input.keywords:
        keywords_section = f"\n**Keywords to consider:**\n{grade_input.keywords}\n"

    prompt = GRADE_PROMPT.format(
        question=grade_input.question,
        rubric=grade_input.rubric,
        keywords_section=keywords_section,
        answer=grade_input.answer,
    )
    return _to_output(generate_structured(prompt, GradeResponse, model))


def chat_with_document(chat_input: ChatWithDocumentInput, model: Optional[str] = None) -> ChatWithDocumentOutput:
    """Answer a teacher's chat message and return a complete re-grade."""
    document = chat_input.document
    current = chat_input.current_analysis

    segments = '\n'.join(
        f'  - Segment: "{item.segment}" | Comment: "{item.comment}" | Sentiment: {item.sentiment}'
        for item in current.analysis
    ) or '  (none)'
    history = '\n'.join(
        f'  - {m.role}: {m.message}' for m in chat_input.chat_history
    ) or '  (none)'

    prompt = CHAT_PROMPT.format(
        question=document.question,
        rubric=document.rubric,
        answer=document.answer,
        keywords_line=f"- Keywords: {document.keywords}\n" if document.keywords else '',
        score=current.score,
        overall_feedback=current.overall_feedback,
        segments=segments,
        history=history,
        user_message=chat_input.user_message,
    )
    response = generate_structured(prompt, ChatResponse, model)
    return ChatWithDocumentOutput(
        llm_response=response.llm_response,
        updated_analysis=_to_output(response.updated_analysis),
    )


def format_answers(raw_text: str, model: Optional[str] = None) -> str:
    """Reformat messy pasted text into name lines followed by • answers."""
    response = generate_structured(FORMAT_PROMPT.format(raw_text=raw_text), FormatResponse, model)
    return response.formatted_text


def apply_semantic_formatting(text: str, style: Optional[str] = None, model: Optional[str] = None) -> str:
    """Reformat free text by its meaning, as a document, report, email, etc."""
    prompt = SEMANTIC_FORMAT_PROMPT.format(style=style or DEFAULT_STYLE, text=text)
    return generate_structured(prompt, FormatResponse, model).formatted_text


def apply_style(text: str, style: str, model: Optional[str] = None) -> str:
    """Rewrite text in a named style."""
    prompt = APPLY_STYLE_PROMPT.format(style=style, text=text)
    return generate_structured(prompt, FormatResponse, model).formatted_text


# =============================================================================
# GRADING WORKFLOW
# =============================================================================

class GradingPassReport(BaseModel):
    graded: int = 0
    total: int = 0
    error: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.error is None and self.graded == self.total


class ChatTurn(BaseModel):
    llm_response: str
    result: GradingResult


def build_grading_result(output: GradeDocumentOutput, answer: str) -> GradingResult:
    """Attach the highlighted answer to a grader's output."""
    return GradingResult(
        analysis=output.analysis,
        overall_feedback=output.overall_feedback,
        score=output.score,
        highlighted_answer=reconcile(answer, output.analysis),
    )


def run_grading_pass(
    store,
    assignment_id: str,
    grader: Callable[[GradeDocumentInput], GradeDocumentOutput] = grade_document,
) -> GradingPassReport:
    """
    Grade every (question, student) pair of an assignment, in order.

    Calls are made one at a time. The first failure ends the pass; results
    already stored stay in place and the error is reported once.
    """
    questions = store.get_questions(assignment_id)
    students = store.get_students(assignment_id)
    report = GradingPassReport(total=len(questions) * len(students))

    if not questions or not students:
        report.error = "Please add questions and students first."
        return report

    store.clear_results(assignment_id)
    logger.info("Grading %d answer(s) for %s", report.total, assignment_id)

    try:
        for index, question in enumerate(questions):
            for student in students:
                answer = student.answer_for(index)
                output = grader(GradeDocumentInput(
                    question=question.text,
                    answer=answer,
                    rubric=question.rubric,
                    keywords=question.keywords,
                    student_id=student.id,
                    question_id=question.id,
                ))
                store.set_result(assignment_id, question.id, student.id,
                                 build_grading_result(output, answer))
                report.graded += 1
                logger.info("[%d/%d] Graded %s on %s: %s",
                            report.graded, report.total, student.name, question.id, output.score)
    except Exception as e:
        logger.error("Grading error for %s: %s", assignment_id, e)
        report.error = f"Could not grade the documents: {e}"

    return report


def _find_pair(store, assignment_id: str, question_id: str, student_id: str):
    questions = store.get_questions(assignment_id)
    index = next((i for i, q in enumerate(questions) if q.id == question_id), None)
    if index is None:
        raise KeyError(f"Question not found: {question_id}")
    student = next((s for s in store.get_students(assignment_id) if s.id == student_id), None)
    if student is None:
        raise KeyError(f"Student not found: {student_id}")
    return index, questions[index], student


def refine_with_chat(
    store,
    assignment_id: str,
    question_id: str,
    student_id: str,
    message: str,
    chat: Callable[[ChatWithDocumentInput], ChatWithDocumentOutput] = chat_with_document,
) -> ChatTurn:
    """
    Send a teacher's message about one graded answer and apply the re-grade.

    Only the (question, student) entry is replaced. If the chat call fails
    the user message is taken back off the history and the error propagates.
    """
    index, question, student = _find_pair(store, assignment_id, question_id, student_id)
    current = store.get_result(assignment_id, question_id, student_id)
    if current is None:
        raise KeyError(f"No grading result for {question_id}/{student_id}")

    history = store.get_chat_history(assignment_id)
    store.append_chat_message(assignment_id, ChatMessage(role="user", message=message))

    answer = student.answer_for(index)
    try:
        output = chat(ChatWithDocumentInput(
            document=GradeDocumentInput(
                question=question.text,
                answer=answer,
                rubric=question.rubric,
                keywords=question.keywords,
                student_id=student.id,
                question_id=question.id,
            ),
            current_analysis=current.to_output(),
            user_message=message,
            chat_history=history,
        ))
    except Exception as e:
        logger.error("Chat error for %s/%s: %s", question_id, student_id, e)
        store.pop_chat_message(assignment_id)
        raise

    store.append_chat_message(assignment_id, ChatMessage(role="model", message=output.llm_response))
    result = build_grading_result(output.updated_analysis, answer)
    store.set_result(assignment_id, question_id, student_id, result)
    return ChatTurn(llm_response=output.llm_response, result=result)


def override_score(store, assignment_id: str, question_id: str, student_id: str, score: float) -> GradingResult:
    """Manual teacher override: change the score and nothing else."""
    with store.lock:
        result = store.get_result(assignment_id, question_id, student_id)
        if result is None:
            raise KeyError(f"No grading result for {question_id}/{student_id}")
        result = result.model_copy(update={"score": score})
        store.set_result(assignment_id, question_id, student_id, result)
    return result
