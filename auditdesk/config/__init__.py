"""
AuditDesk — Configuration & Constants
All environment variables, feature flags, model names and paths.
"""
import os
import logging
from pathlib import Path

# ============================================================
# PATHS
# ============================================================
BASE_DIR = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.environ.get("AUDITDESK_DATA_DIR", BASE_DIR / "data"))
UPLOAD_DIR = DATA_DIR / "uploads"
DB_PATH = DATA_DIR / "db.json"

# ============================================================
# FEATURE FLAGS
# ============================================================
USE_REAL_API = bool(os.environ.get("ANTHROPIC_API_KEY"))
PERSIST_DATA = os.environ.get("PERSIST_DATA", "true").lower() == "true"
SEED_DEMO = os.environ.get("SEED_DEMO", "true").lower() == "true"
RESET_ON_START = os.environ.get("RESET_ON_START", "false").lower() == "true"

# ============================================================
# AUDIT PARAMETERS
# ============================================================
FISCAL_YEAR_END = os.environ.get("FISCAL_YEAR_END", "2024-12-31")

# ============================================================
# AI PROVIDER
# ============================================================
PRIMARY_MODEL = os.environ.get("AUDITDESK_PRIMARY_MODEL", "claude-sonnet-4-20250514")
REPORTING_MODEL = os.environ.get("AUDITDESK_REPORTING_MODEL", "claude-sonnet-4-20250514")
AI_TIMEOUT_SECONDS = float(os.environ.get("AI_TIMEOUT_SECONDS", "60"))
AI_MAX_RETRIES = int(os.environ.get("AI_MAX_RETRIES", "2"))
AI_MAX_TOKENS = 4000

# ============================================================
# UPLOADS
# ============================================================
MAX_UPLOAD_MB = float(os.environ.get("MAX_UPLOAD_MB", "10"))
ALLOWED_MEDIA_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp", "application/pdf")

# ============================================================
# LOGGING
# ============================================================
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = None):
    """Configure the auditdesk logger namespace. Called once by the server entry point."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
    logging.getLogger("auditdesk").setLevel(level or LOG_LEVEL)


def ensure_dirs():
    for d in (DATA_DIR, UPLOAD_DIR):
        d.mkdir(parents=True, exist_ok=True)


# ============================================================
# VERSION
# ============================================================
VERSION = "1.0.0"
