"""
Grading API routes for Teacher's Pet.
Handles the grading pass, chat refinement of one graded answer, and manual
score overrides.

The grading pass runs inside the request: one model call per
(question, student) pair, one after the other.
"""
import math
import logging
from flask import Blueprint, request, jsonify

from teacherspet.services.grading_service import override_score, refine_with_chat, run_grading_pass

logger = logging.getLogger(__name__)

grading_bp = Blueprint('grading', __name__)

# Set by register_routes during initialization
store = None
grade_document = None
chat_with_document = None


def init_grading_routes(store_ref, grader, chat):
    """Initialize grading routes with the shared store and model collaborators."""
    global store, grade_document, chat_with_document
    store = store_ref
    grade_document = grader
    chat_with_document = chat


def _results_json(assignment_id):
    return {
        question_id: {student_id: r.to_json() for student_id, r in by_student.items()}
        for question_id, by_student in store.get_results(assignment_id).items()
    }


@grading_bp.route('/api/assignments/<assignment_id>/grade', methods=['POST'])
def start_grading(assignment_id):
    """Grade every answer of the assignment from scratch."""
    report = run_grading_pass(store, assignment_id, grader=grade_document)

    body = {
        "graded": report.graded,
        "total": report.total,
        "complete": report.complete,
        "results": _results_json(assignment_id),
    }
    if report.error:
        body["error"] = report.error
        # Nothing to grade is the caller's mistake; a failed pass is upstream.
        status = 400 if report.total == 0 else 502
        return jsonify(body), status
    return jsonify(body)


@grading_bp.route('/api/assignments/<assignment_id>/results', methods=['GET'])
def get_results(assignment_id):
    """Current grading results keyed by question id then student id."""
    return jsonify({"results": _results_json(assignment_id)})


@grading_bp.route('/api/assignments/<assignment_id>/chat', methods=['POST'])
def chat(assignment_id):
    """
    Ask the AI to refine one graded answer.

    Request body:
    {
        "questionId": "q1",
        "studentId": "s1",
        "message": "Be more lenient about spelling."
    }
    """
    data = request.get_json(silent=True) or {}
    question_id = data.get('questionId', '')
    student_id = data.get('studentId', '')
    message = (data.get('message') or '').strip()

    if not question_id or not student_id or not message:
        return jsonify({"error": "questionId, studentId and message are required"}), 400

    try:
        turn = refine_with_chat(store, assignment_id, question_id, student_id, message,
                                chat=chat_with_document)
    except KeyError as e:
        return jsonify({"error": str(e.args[0]) if e.args else "Not found"}), 404
    except Exception as e:
        logger.error("Chat error: %s", e)
        return jsonify({"error": "Could not get response from AI. Please try again."}), 502

    return jsonify({
        "llmResponse": turn.llm_response,
        "result": turn.result.to_json(),
        "chat": [m.to_json() for m in store.get_chat_history(assignment_id)],
    })


@grading_bp.route('/api/assignments/<assignment_id>/score', methods=['POST'])
def update_score(assignment_id):
    """Manual score override for one (question, student) result."""
    data = request.get_json(silent=True) or {}
    question_id = data.get('questionId', '')
    student_id = data.get('studentId', '')

    try:
        score = float(data['score'])
    except (KeyError, TypeError, ValueError):
        return jsonify({"error": "A numeric score is required"}), 400
    if not math.isfinite(score):
        return jsonify({"error": "Score must be a finite number"}), 400

    try:
        result = override_score(store, assignment_id, question_id, student_id, score)
    except KeyError as e:
        return jsonify({"error": str(e.args[0]) if e.args else "Not found"}), 404

    return jsonify({"status": "updated", "result": result.to_json()})
