#!/usr/bin/env python3
"""
Teacher's Pet - AI-Powered Assignment Grading
=============================================
Run: python3 -m teacherspet.app
Then point the browser UI at: http://localhost:3000
"""
import logging

from flask import Flask, jsonify
from flask_cors import CORS

from teacherspet.config import DEBUG, HOST, MAX_UPLOAD_BYTES, PORT, config
from teacherspet.routes import register_routes
from teacherspet.services.assignment_store import AssignmentStore, JsonFileBackend

logger = logging.getLogger(__name__)


def create_app(store=None, grader=None, chat=None, formatter=None):
    """
    Build the Flask app.

    Without a store, assignments are persisted to the configured JSON data
    file. grader / chat / formatter override the AI collaborators.
    """
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_BYTES
    CORS(app)

    if store is None:
        store = AssignmentStore(JsonFileBackend(config.data_file))
    app.extensions['assignment_store'] = store

    register_routes(app, store, grader=grader, chat=chat, formatter=formatter)

    @app.route('/api/health')
    def health():
        return jsonify({"status": "ok", "model": config.model})

    return app


def main():
    logging.basicConfig(
        level=logging.DEBUG if DEBUG else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    logger.info("Teacher's Pet listening on http://%s:%s", HOST, PORT)
    app.run(host=HOST, port=PORT, debug=DEBUG)


if __name__ == '__main__':
    main()
