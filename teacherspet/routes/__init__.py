"""
Teacher's Pet API Routes
========================

All API route blueprints for the Teacher's Pet application.

Usage:
    from teacherspet.routes import register_routes
    register_routes(app, store)
"""
from .assignment_routes import assignment_bp, init_assignment_routes
from .document_routes import document_bp, init_document_routes
from .grading_routes import grading_bp, init_grading_routes


def register_routes(app, store, grader=None, chat=None, formatter=None,
                    semantic_formatter=None, styler=None):
    """
    Register all route blueprints with the Flask app.

    grader / chat / formatter / semantic_formatter / styler default to the
    AI-backed implementations in teacherspet.services.grading_service.
    """
    from teacherspet.services import grading_service

    init_assignment_routes(store)
    init_document_routes(
        store,
        formatter or grading_service.format_answers,
        semantic_formatter or grading_service.apply_semantic_formatting,
        styler or grading_service.apply_style,
        grading_service.STYLE_OPTIONS,
    )
    init_grading_routes(
        store,
        grader or grading_service.grade_document,
        chat or grading_service.chat_with_document,
    )

    app.register_blueprint(assignment_bp)
    app.register_blueprint(document_bp)
    app.register_blueprint(grading_bp)


__all__ = [
    'register_routes',
    'assignment_bp',
    'document_bp',
    'grading_bp',
]
