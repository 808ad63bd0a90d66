"""
Document handling API routes for Teacher's Pet.
Handles document preview parsing, answer ingestion (pasted text or one
uploaded file per student) and free-text formatting.
"""
import html
import logging
from flask import Blueprint, request, jsonify

from teacherspet.services.answer_parser import ingest_files, ingest_pasted_text, validate_roster
from teacherspet.services.llm_client import GradingError
from teacherspet.services.text_extraction import (
    UnsupportedFileType, convert_docx_to_html, extract_text,
)

logger = logging.getLogger(__name__)

document_bp = Blueprint('document', __name__)

# Set by register_routes during initialization
store = None
format_answers = None
semantic_format = None
style_transfer = None
style_options = []


def init_document_routes(store_ref, formatter, semantic_formatter=None, styler=None, styles=None):
    """Initialize document routes with the shared store and text formatters."""
    global store, format_answers, semantic_format, style_transfer, style_options
    store = store_ref
    format_answers = formatter
    semantic_format = semantic_formatter
    style_transfer = styler
    style_options = list(styles or [])


@document_bp.route('/api/parse-document', methods=['POST'])
def parse_document():
    """Parse an uploaded Word/PDF/text document for preview."""
    if 'file' not in request.files:
        return jsonify({"error": "No file uploaded"}), 400

    file = request.files['file']
    filename = file.filename or ''
    file_data = file.read()

    try:
        text = extract_text(filename, file_data)
        if filename.lower().endswith('.docx'):
            preview = convert_docx_to_html(file_data)
        else:
            preview = f'<pre style="white-space: pre-wrap;">{html.escape(text)}</pre>'
    except UnsupportedFileType as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        logger.error("Failed to parse %s: %s", filename, e)
        return jsonify({"error": f"Could not read {filename}: {e}"}), 400

    return jsonify({
        "html": preview,
        "text": text,
        "filename": filename,
        "type": "html"
    })


def _finish_ingestion(assignment_id, result, expected_count, continue_anyway):
    """
    Validate parsed students against the assignment and save them.

    Count mismatches hold the roster back unless the teacher chose to
    continue anyway. Per-file warnings never block saving.
    """
    questions = store.get_questions(assignment_id)
    roster_warnings = validate_roster(result.students, questions, expected_count)

    saved = bool(result.students) and (not roster_warnings or continue_anyway)
    if saved:
        store.set_students(assignment_id, result.students)
        store.clear_results(assignment_id)
        logger.info("Saved %d student(s) to %s", len(result.students), assignment_id)

    return {
        "students": [s.to_json() for s in result.students],
        "warnings": [w.to_json() for w in result.warnings + roster_warnings],
        "saved": saved,
    }


def _expected_count(value):
    if value in (None, ''):
        return None
    return int(value)


@document_bp.route('/api/assignments/<assignment_id>/ingest/paste', methods=['POST'])
def ingest_paste(assignment_id):
    """
    Ingest a pasted block of every student's answers.

    Request body:
    {
        "text": "Alice\\n• A1\\n• A2\\n\\nBob\\n• B1\\n• B2",
        "expectedCount": 2,        (optional)
        "format": false,           (optional, AI reformat messy text first)
        "continueAnyway": false    (optional, save despite count mismatches)
    }
    """
    data = request.get_json(silent=True) or {}
    text = data.get('text', '')
    if not isinstance(text, str):
        return jsonify({"error": "text must be a string"}), 400
    if not text.strip():
        return jsonify({"error": "Please paste some answers first."}), 400

    try:
        expected = _expected_count(data.get('expectedCount'))
    except (TypeError, ValueError):
        return jsonify({"error": "expectedCount must be a number"}), 400

    if data.get('format'):
        try:
            text = format_answers(text)
        except GradingError as e:
            logger.error("Formatting error: %s", e)
            return jsonify({"error": "Could not format the answers. Please try again."}), 502

    result = ingest_pasted_text(text)
    response = _finish_ingestion(assignment_id, result, expected, bool(data.get('continueAnyway')))
    if data.get('format'):
        response['formattedText'] = text
    return jsonify(response)


@document_bp.route('/api/assignments/<assignment_id>/ingest/files', methods=['POST'])
def ingest_uploaded_files(assignment_id):
    """Ingest one uploaded file per student (multipart field "files")."""
    uploads = request.files.getlist('files')
    if not uploads:
        return jsonify({"error": "No files uploaded"}), 400

    try:
        expected = _expected_count(request.form.get('expectedCount'))
    except (TypeError, ValueError):
        return jsonify({"error": "expectedCount must be a number"}), 400
    continue_anyway = request.form.get('continueAnyway', '').lower() in ('1', 'true', 'yes')

    files = ((upload.filename or 'untitled', upload.read()) for upload in uploads)
    result = ingest_files(files, extract=extract_text)
    return jsonify(_finish_ingestion(assignment_id, result, expected, continue_anyway))


@document_bp.route('/api/format/styles', methods=['GET'])
def list_styles():
    """Styles offered by the formatting tool."""
    return jsonify({"styles": style_options})


@document_bp.route('/api/format', methods=['POST'])
def format_text():
    """
    Reformat free text with the AI formatter.

    Request body:
    {
        "text": "meeting notes ...",
        "style": "Report",          (optional, defaults to a plain document)
        "mode": "semantic"          (optional, "semantic" or "style")
    }

    "semantic" restructures the text by meaning in the chosen style;
    "style" only rewrites it in that style and requires "style".
    """
    data = request.get_json(silent=True) or {}
    text = data.get('text', '')
    style = data.get('style') or None
    mode = data.get('mode', 'semantic')

    if not isinstance(text, str) or not text.strip():
        return jsonify({"error": "Please enter some text to format."}), 400
    if style is not None and not isinstance(style, str):
        return jsonify({"error": "style must be a string"}), 400
    if mode not in ('semantic', 'style'):
        return jsonify({"error": "mode must be 'semantic' or 'style'"}), 400
    if mode == 'style' and not style:
        return jsonify({"error": "A style is required"}), 400

    try:
        if mode == 'style':
            formatted = style_transfer(text, style)
        else:
            formatted = semantic_format(text, style)
    except GradingError as e:
        logger.error("Formatting error: %s", e)
        return jsonify({"error": "Failed to format text. Please try again."}), 502

    return jsonify({"formattedText": formatted, "style": style, "mode": mode})
