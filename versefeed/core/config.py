# core/config.py
import os
import logging

from dotenv import load_dotenv

# Load .env
load_dotenv()

# ---- ENV VALUES ----
BIBLE_API_KEY = os.getenv("BIBLE_API_KEY", "")
BIBLE_API_BASE_URL = os.getenv("BIBLE_API_BASE_URL", "https://api.scripture.api.bible/v1")
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "15"))

# Free Bible Version: the edition most users land on
DEFAULT_EDITION_ID = os.getenv("DEFAULT_EDITION_ID", "65eec8e0b60e656b-01")

# Retry policy applied to the default edition only
RETRY_MAX_ATTEMPTS = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
RETRY_DELAY_MS = int(os.getenv("RETRY_DELAY_MS", "500"))

# ---- SERVER ----
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "5055"))
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

# ---- CLIENT ----
VERSEFEED_API_URL = os.getenv("VERSEFEED_API_URL", f"http://{HOST}:{PORT}/api")
VERSEFEED_DATA_DIR = os.getenv(
    "VERSEFEED_DATA_DIR",
    os.path.join(os.path.expanduser("~"), ".versefeed"),
)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging(level: str = None) -> None:
    """Configure root logging once at process entry."""
    logging.basicConfig(
        level=getattr(logging, level or LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
