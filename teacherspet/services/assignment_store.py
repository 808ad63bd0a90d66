"""
Assignment storage.

Every assignment is a namespace of JSON-serialized entries in a key-value
backend:

    {assignmentId}-name        assignment name
    {assignmentId}-questions   list of Question
    {assignmentId}-students    list of Student
    {assignmentId}-results     {questionId: {studentId: GradingResult}}
    {assignmentId}-chat        list of ChatMessage

Assignment ids look like "asg-{epoch-ms}" so listing can sort by creation
time. MemoryBackend is used in tests, JsonFileBackend on a server.
"""
import os
import json
import time
import logging
import tempfile
import threading
from typing import Dict, Iterable, List, Optional

from teacherspet.example_data import EXAMPLE_QUESTIONS, EXAMPLE_STUDENTS
from teacherspet.models import AssignmentSummary, ChatMessage, GradingResult, Question, Student

logger = logging.getLogger(__name__)

ASSIGNMENT_PREFIX = "asg-"


class KeyValueBackend:
    """String key -> string value storage."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> Iterable[str]:
        raise NotImplementedError


class MemoryBackend(KeyValueBackend):
    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data = dict(data or {})

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)

    def keys(self):
        return list(self.data.keys())


class JsonFileBackend(MemoryBackend):
    """
    MemoryBackend persisted to a single JSON file after every change.

    Flask serves requests on several threads, so every mutation and the
    file write that follows it happen under one lock. Each save goes to its
    own temp file in the target directory and is then swapped into place.
    """

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)
        self._lock = threading.Lock()
        data = {}
        if os.path.exists(self.path):
            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning("Could not load %s, starting empty: %s", self.path, e)
        super().__init__(data)

    def _save(self):
        directory = os.path.dirname(self.path) or '.'
        os.makedirs(directory, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            'w', encoding='utf-8', dir=directory,
            prefix=os.path.basename(self.path) + '.', suffix='.tmp', delete=False,
        ) as f:
            tmp_path = f.name
            try:
                json.dump(self.data, f, indent=2)
            except (TypeError, ValueError):
                f.close()
                os.unlink(tmp_path)
                raise
        os.replace(tmp_path, self.path)

    def set(self, key, value):
        with self._lock:
            super().set(key, value)
            self._save()

    def delete(self, key):
        with self._lock:
            if key in self.data:
                super().delete(key)
                self._save()

    def keys(self):
        with self._lock:
            return super().keys()


class AssignmentStore:
    """Typed access to the per-assignment entries of a backend."""

    def __init__(self, backend: Optional[KeyValueBackend] = None):
        self.backend = backend if backend is not None else MemoryBackend()
        # Held around every read-modify-write of a JSON entry
        self.lock = threading.RLock()

    # -- raw JSON entries ---------------------------------------------------

    def _read(self, assignment_id: str, field: str, default):
        raw = self.backend.get(f"{assignment_id}-{field}")
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Corrupt %s entry for %s, ignoring", field, assignment_id)
            return default

    def _write(self, assignment_id: str, field: str, value) -> None:
        self.backend.set(f"{assignment_id}-{field}", json.dumps(value))

    # -- assignments --------------------------------------------------------

    @staticmethod
    def new_assignment_id() -> str:
        return f"{ASSIGNMENT_PREFIX}{int(time.time() * 1000)}"

    def list_assignments(self) -> List[AssignmentSummary]:
        """Saved assignments, most recently created first."""
        summaries = []
        for key in self.backend.keys():
            if not key.endswith('-name'):
                continue
            assignment_id = key[:-len('-name')]
            if not assignment_id.startswith(ASSIGNMENT_PREFIX):
                continue
            name = self.get_name(assignment_id)
            if name:
                summaries.append(AssignmentSummary(id=assignment_id, name=name))

        def created_at(summary):
            try:
                return int(summary.id.split('-')[1])
            except (IndexError, ValueError):
                return 0

        return sorted(summaries, key=created_at, reverse=True)

    def delete_assignment(self, assignment_id: str) -> None:
        """Remove every entry belonging to an assignment."""
        prefix = f"{assignment_id}-"
        with self.lock:
            for key in list(self.backend.keys()):
                if key.startswith(prefix):
                    self.backend.delete(key)

    def get_name(self, assignment_id: str) -> str:
        return self._read(assignment_id, 'name', '')

    def set_name(self, assignment_id: str, name: str) -> None:
        self._write(assignment_id, 'name', name)

    # -- roster -------------------------------------------------------------

    def get_questions(self, assignment_id: str) -> List[Question]:
        return [Question.model_validate(q) for q in self._read(assignment_id, 'questions', [])]

    def set_questions(self, assignment_id: str, questions: List[Question]) -> None:
        self._write(assignment_id, 'questions', [q.to_json() for q in questions])

    def get_students(self, assignment_id: str) -> List[Student]:
        return [Student.model_validate(s) for s in self._read(assignment_id, 'students', [])]

    def set_students(self, assignment_id: str, students: List[Student]) -> None:
        self._write(assignment_id, 'students', [s.to_json() for s in students])

    def add_question(self, assignment_id: str, question: Question) -> None:
        with self.lock:
            questions = self.get_questions(assignment_id)
            questions.append(question)
            self.set_questions(assignment_id, questions)

    def remove_question(self, assignment_id: str, index: int) -> Optional[Question]:
        """
        Remove the question at `index`, the answer at that position from
        every student, and the question's grading results.
        Returns None when there is no question at `index`.
        """
        with self.lock:
            questions = self.get_questions(assignment_id)
            if not 0 <= index < len(questions):
                return None
            removed = questions.pop(index)
            self.set_questions(assignment_id, questions)

            students = self.get_students(assignment_id)
            for student in students:
                if index < len(student.answers):
                    del student.answers[index]
            self.set_students(assignment_id, students)

            raw = self._read(assignment_id, 'results', {})
            if raw.pop(removed.id, None) is not None:
                self._write(assignment_id, 'results', raw)
            return removed

    def add_student(self, assignment_id: str, student_id: str) -> Optional[Student]:
        """Append "Student N" with one empty answer per question; None without questions."""
        with self.lock:
            questions = self.get_questions(assignment_id)
            if not questions:
                return None
            students = self.get_students(assignment_id)
            student = Student(
                id=student_id,
                name=f"Student {len(students) + 1}",
                answers=[""] * len(questions),
            )
            students.append(student)
            self.set_students(assignment_id, students)
            return student

    def load_example(self, assignment_id: str) -> None:
        self.set_questions(assignment_id, [Question.model_validate(q) for q in EXAMPLE_QUESTIONS])
        self.set_students(assignment_id, [Student.model_validate(s) for s in EXAMPLE_STUDENTS])

    # -- grading results ----------------------------------------------------

    def get_results(self, assignment_id: str) -> Dict[str, Dict[str, GradingResult]]:
        raw = self._read(assignment_id, 'results', {})
        return {
            question_id: {
                student_id: GradingResult.model_validate(result)
                for student_id, result in by_student.items()
            }
            for question_id, by_student in raw.items()
        }

    def get_result(self, assignment_id: str, question_id: str, student_id: str) -> Optional[GradingResult]:
        result = self._read(assignment_id, 'results', {}).get(question_id, {}).get(student_id)
        if result is None:
            return None
        return GradingResult.model_validate(result)

    def set_result(self, assignment_id: str, question_id: str, student_id: str, result: GradingResult) -> None:
        """Replace one (question, student) entry, leaving the rest untouched."""
        with self.lock:
            raw = self._read(assignment_id, 'results', {})
            raw.setdefault(question_id, {})[student_id] = result.to_json()
            self._write(assignment_id, 'results', raw)

    def clear_results(self, assignment_id: str) -> None:
        self._write(assignment_id, 'results', {})

    # -- chat ---------------------------------------------------------------

    def get_chat_history(self, assignment_id: str) -> List[ChatMessage]:
        return [ChatMessage.model_validate(m) for m in self._read(assignment_id, 'chat', [])]

    def set_chat_history(self, assignment_id: str, history: List[ChatMessage]) -> None:
        self._write(assignment_id, 'chat', [m.to_json() for m in history])

    def append_chat_message(self, assignment_id: str, message: ChatMessage) -> None:
        with self.lock:
            raw = self._read(assignment_id, 'chat', [])
            raw.append(message.to_json())
            self._write(assignment_id, 'chat', raw)

    def pop_chat_message(self, assignment_id: str) -> Optional[ChatMessage]:
        with self.lock:
            raw = self._read(assignment_id, 'chat', [])
            if not raw:
                return None
            last = raw.pop()
            self._write(assignment_id, 'chat', raw)
        return ChatMessage.model_validate(last)

    def snapshot(self, assignment_id: str) -> dict:
        """Everything stored for an assignment, as JSON-ready data."""
        return {
            "id": assignment_id,
            "name": self.get_name(assignment_id),
            "questions": self._read(assignment_id, 'questions', []),
            "students": self._read(assignment_id, 'students', []),
            "results": self._read(assignment_id, 'results', {}),
            "chat": self._read(assignment_id, 'chat', []),
        }
