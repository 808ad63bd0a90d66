"""
Answer Ingestion
================

Turns raw answer text into an ordered roster of Students whose answers line
up by position with the assignment's Questions.

Two ingestion modes:

- File per student: each uploaded file is one student, named after the file
  (extension stripped). Only bullet lines count as answers.
- Pasted block: one text blob holding every student. A non-bullet line is a
  student name, the bullet lines after it are that student's answers:

      Alice
      • Photosynthesis is how plants eat.
      • The mitochondria is the powerhouse of the cell.

      Bob
      • Plants use photosynthesis to make food.
      • Mitochondria produce ATP.

A bullet is one of: •  -  –  *

Count mismatches are never raised here; validate_roster() reports them as
warnings for the caller to show ("continue anyway" / "go back and fix").
"""
import re
import time
import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from teacherspet.models import IngestionResult, IngestionWarning, Question, Student
from teacherspet.services.text_extraction import extract_text

logger = logging.getLogger(__name__)

BULLET_MARKERS = "•-–*"
ANSWER_LINE_RE = re.compile(r'^\s*[' + re.escape(BULLET_MARKERS) + r']\s*(.*)$')


def sanitize_line(line: str) -> str:
    """
    Drop control and non-printable characters, then trim.

    Kept: printable ASCII (0x20-0x7E) and everything from 0xA0 up.
    """
    kept = ''.join(c for c in line if 0x20 <= ord(c) <= 0x7E or ord(c) >= 0xA0)
    return kept.strip()


def match_answer_line(line: str) -> Optional[str]:
    """Return the answer text of a bullet line, or None for any other line."""
    match = ANSWER_LINE_RE.match(line.strip())
    if match:
        return match.group(1).strip()
    return None


def _new_student_id(index: int) -> str:
    return f"s{int(time.time() * 1000)}-{index}"


def parse_pasted_answers(text: str) -> List[Student]:
    """
    Parse a pasted multi-student block (name line followed by bullet lines).

    A student is only kept once it has at least one answer, so a name line
    followed directly by another name line is dropped. Bullet lines that
    appear before any name line have no owner and are ignored.
    """
    students = []
    current_name = None
    current_answers = []

    def commit():
        if current_name is not None and current_answers:
            students.append(Student(
                id=_new_student_id(len(students)),
                name=current_name,
                answers=list(current_answers),
            ))

    for raw_line in (text or '').splitlines():
        line = sanitize_line(raw_line)
        if not line:
            continue

        answer = match_answer_line(line)
        if answer is not None:
            if current_name is None:
                logger.debug("Ignoring answer line with no student name: %s", line[:40])
                continue
            current_answers.append(answer)
        else:
            commit()
            current_name = line
            current_answers = []

    commit()
    return students


def student_name_from_filename(filename: str) -> str:
    """Display name for a file-per-student upload: base name without extension."""
    return Path(filename).stem.strip() or filename


def parse_answer_file(filename: str, text: str, index: int = 0) -> Optional[Student]:
    """
    Parse one student's file. Every bullet line is an answer, in order;
    all other lines are ignored. Returns None when the file has no bullets.
    """
    answers = []
    for raw_line in (text or '').splitlines():
        answer = match_answer_line(sanitize_line(raw_line))
        if answer is not None:
            answers.append(answer)

    if not answers:
        return None

    return Student(
        id=_new_student_id(index),
        name=student_name_from_filename(filename),
        answers=answers,
    )


def ingest_pasted_text(text: str) -> IngestionResult:
    """Mode B: one pasted block holding every student."""
    students = parse_pasted_answers(text)
    logger.info("Parsed %d student(s) from pasted text", len(students))
    return IngestionResult(students=students)


def ingest_files(
    files: Iterable[Tuple[str, bytes]],
    extract: Callable[[str, bytes], str] = extract_text,
) -> IngestionResult:
    """
    Mode A: one student per (filename, file_data) pair.

    Files are read one at a time. An unreadable file or a file without any
    bullet lines is reported as a warning and the rest of the batch carries
    on.
    """
    result = IngestionResult()

    for filename, file_data in files:
        try:
            text = extract(filename, file_data)
        except Exception as e:
            logger.warning("Could not read %s: %s", filename, e)
            result.warnings.append(IngestionWarning(
                kind="unreadable_file",
                source=filename,
                message=f"Could not read {filename}: {e}",
            ))
            continue

        student = parse_answer_file(filename, text, index=len(result.students))
        if student is None:
            logger.warning("No bulleted answers found in %s", filename)
            result.warnings.append(IngestionWarning(
                kind="no_answers",
                source=filename,
                message=f"No bulleted answers found in {filename}",
            ))
            continue

        result.students.append(student)

    logger.info("Parsed %d student(s) from uploaded files (%d warning(s))",
                len(result.students), len(result.warnings))
    return result


def validate_roster(
    students: List[Student],
    questions: List[Question],
    expected_count: Optional[int] = None,
) -> List[IngestionWarning]:
    """
    Compare a parsed roster against what the teacher expects.

    Returns one warning for a student-count mismatch (only when
    expected_count is given) and one per student whose answer count differs
    from the number of questions.
    """
    warnings = []

    if expected_count is not None and len(students) != expected_count:
        warnings.append(IngestionWarning(
            kind="student_count",
            message=f"Expected {expected_count} student(s) but found {len(students)}.",
        ))

    for student in students:
        if len(student.answers) != len(questions):
            warnings.append(IngestionWarning(
                kind="answer_count",
                source=student.name,
                message=(f"{student.name} has {len(student.answers)} answer(s) "
                         f"but there are {len(questions)} question(s)."),
            ))

    return warnings
