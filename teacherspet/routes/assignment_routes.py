"""
Assignment API routes for Teacher's Pet.
Handles creating, listing, deleting and editing assignments (name,
questions, students).
"""
import time
from flask import Blueprint, request, jsonify
from pydantic import ValidationError

from teacherspet.models import Question, Student

assignment_bp = Blueprint('assignment', __name__)

# Set by register_routes during initialization
store = None


def init_assignment_routes(store_ref):
    """Initialize assignment routes with the shared AssignmentStore."""
    global store
    store = store_ref


@assignment_bp.route('/api/assignments', methods=['GET'])
def list_assignments():
    """List saved assignments, most recent first."""
    return jsonify({"assignments": [a.to_json() for a in store.list_assignments()]})


@assignment_bp.route('/api/assignments', methods=['POST'])
def create_assignment():
    """Create a new, empty assignment."""
    data = request.get_json(silent=True) or {}
    assignment_id = store.new_assignment_id()
    store.set_name(assignment_id, data.get('name') or 'Untitled Assignment')
    return jsonify(store.snapshot(assignment_id)), 201


@assignment_bp.route('/api/assignments/<assignment_id>', methods=['GET'])
def get_assignment(assignment_id):
    """Everything stored for one assignment."""
    return jsonify(store.snapshot(assignment_id))


@assignment_bp.route('/api/assignments/<assignment_id>', methods=['DELETE'])
def delete_assignment(assignment_id):
    """Permanently delete an assignment and all related data."""
    store.delete_assignment(assignment_id)
    return jsonify({"status": "deleted", "id": assignment_id})


@assignment_bp.route('/api/assignments/<assignment_id>/name', methods=['PUT'])
def rename_assignment(assignment_id):
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        return jsonify({"error": "Name is required"}), 400
    store.set_name(assignment_id, name)
    return jsonify({"status": "saved", "name": name})


@assignment_bp.route('/api/assignments/<assignment_id>/questions', methods=['PUT'])
def save_questions(assignment_id):
    """Replace the question list."""
    data = request.get_json(silent=True) or {}
    try:
        questions = [Question.model_validate(q) for q in data.get('questions', [])]
    except ValidationError as e:
        return jsonify({"error": f"Invalid question: {e}"}), 400
    store.set_questions(assignment_id, questions)
    return jsonify({"status": "saved", "questions": [q.to_json() for q in questions]})


@assignment_bp.route('/api/assignments/<assignment_id>/questions', methods=['POST'])
def add_question(assignment_id):
    """Append a blank question."""
    question = Question(id=f"q{int(time.time() * 1000)}", text="New Question")
    store.add_question(assignment_id, question)
    return jsonify(question.to_json()), 201


@assignment_bp.route('/api/assignments/<assignment_id>/questions/<int:index>', methods=['DELETE'])
def remove_question(assignment_id, index):
    """Remove a question, its answer position in every student, and its results."""
    removed = store.remove_question(assignment_id, index)
    if removed is None:
        return jsonify({"error": "Question not found"}), 404
    return jsonify({"status": "deleted", "id": removed.id})


@assignment_bp.route('/api/assignments/<assignment_id>/students', methods=['PUT'])
def save_students(assignment_id):
    """Replace the student list (manual edits)."""
    data = request.get_json(silent=True) or {}
    try:
        students = [Student.model_validate(s) for s in data.get('students', [])]
    except ValidationError as e:
        return jsonify({"error": f"Invalid student: {e}"}), 400
    store.set_students(assignment_id, students)
    return jsonify({"status": "saved", "students": [s.to_json() for s in students]})


@assignment_bp.route('/api/assignments/<assignment_id>/students', methods=['POST'])
def add_student(assignment_id):
    """Append a student with one empty answer per question."""
    student = store.add_student(assignment_id, f"s{int(time.time() * 1000)}")
    if student is None:
        return jsonify({"error": "Please add at least one question before adding students."}), 400
    return jsonify(student.to_json()), 201


@assignment_bp.route('/api/assignments/<assignment_id>/example', methods=['POST'])
def load_example(assignment_id):
    """Load the example questions and students."""
    store.load_example(assignment_id)
    return jsonify(store.snapshot(assignment_id))
