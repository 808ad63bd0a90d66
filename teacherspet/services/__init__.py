"""
Teacher's Pet Services
======================

Business logic for the Teacher's Pet application.

Services:
- answer_parser: pasted / uploaded text -> student roster
- text_extraction: .txt / .docx / .pdf -> plain text
- highlighter: grader segments -> highlighted answer HTML
- llm_client: OpenAI / Anthropic / Gemini structured calls
- grading_service: grading pass, chat refinement, score overrides
- assignment_store: per-assignment key-value persistence
"""

# Services are imported directly when needed to avoid circular imports
# Example: from teacherspet.services.grading_service import run_grading_pass

__all__ = [
    'answer_parser',
    'text_extraction',
    'highlighter',
    'llm_client',
    'grading_service',
    'assignment_store',
]
