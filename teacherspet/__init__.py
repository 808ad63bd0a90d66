"""
Teacher's Pet Package
=====================

Flask-based backend for the Teacher's Pet AI grading assistant.

Structure:
- routes/: API route blueprints
- services/: Answer ingestion, highlighting, grading and storage
- models.py: Question / Student / GradingResult records
- config.py: Configuration management
"""

from .config import config, Config

__version__ = "1.0.0"

__all__ = ['config', 'Config']
