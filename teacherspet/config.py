"""
Configuration management for Teacher's Pet.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Base paths
PACKAGE_DIR = Path(__file__).parent
BASE_DIR = PACKAGE_DIR.parent

# Load environment variables
load_dotenv(BASE_DIR / ".env")

# User data
HOME_DIR = Path.home()
DATA_FILE = os.getenv("TEACHERSPET_DATA_FILE", str(HOME_DIR / ".teacherspet_data.json"))

# API Configuration
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")

# Default model alias (claude-*, gemini-*, anything else goes to OpenAI)
DEFAULT_MODEL = os.getenv("TEACHERSPET_MODEL", "gemini-flash")

# Server configuration
HOST = os.getenv("TEACHERSPET_HOST", "0.0.0.0")
PORT = int(os.getenv("TEACHERSPET_PORT", "3000"))
DEBUG = os.getenv("TEACHERSPET_DEBUG", "").lower() in ("1", "true", "yes")

# Ingestion
SUPPORTED_FILE_TYPES = ['.txt', '.md', '.docx', '.pdf']
MAX_UPLOAD_BYTES = 16 * 1024 * 1024


class Config:
    """Application configuration class."""

    def __init__(self):
        self.data_file = DATA_FILE
        self.model = DEFAULT_MODEL
        self.openai_api_key = OPENAI_API_KEY
        self.anthropic_api_key = ANTHROPIC_API_KEY
        self.gemini_api_key = GEMINI_API_KEY

    def to_dict(self):
        return {
            "data_file": self.data_file,
            "model": self.model,
            "openai_api_key": self.openai_api_key,
            "anthropic_api_key": self.anthropic_api_key,
            "gemini_api_key": self.gemini_api_key,
        }

    def update(self, data: dict):
        for key, value in data.items():
            if hasattr(self, key):
                setattr(self, key, value)


# Global config instance
config = Config()
