"""
Runtime configuration for AKKOR KARIKATUR.

Values come from the process environment, optionally seeded from a `.env`
file in the working directory.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# ========== Credentials ==========
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")

# ========== Model ==========
IMAGE_MODEL = os.getenv("KARIKATUR_IMAGE_MODEL", "gemini-2.5-flash-image")

# ========== Server ==========
HOST = os.getenv("KARIKATUR_HOST", "127.0.0.1")
PORT = int(os.getenv("KARIKATUR_PORT", "5001"))
DEBUG = os.getenv("KARIKATUR_DEBUG", "").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("KARIKATUR_LOG_LEVEL", "INFO").upper()

# ========== Upload / export ==========
ACCEPTED_FILE_TYPES = ".jpg, .jpeg, .png"
DEFAULT_MIME_TYPE = "image/png"
DOWNLOAD_PREFIX = "akkor-karikatur"


def warn_if_unconfigured():
    """Log a warning when no API key is available; generation will fail at call time."""
    if not GEMINI_API_KEY:
        logger.warning("GEMINI_API_KEY not set in environment or .env. Generation requests will fail.")
