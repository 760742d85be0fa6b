"""
config.py – runtime settings for TestArena, read once from the environment.
"""

import logging
import os
import secrets

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ── Storage ───────────────────────────────────────────────────────────────────

DB_PATH = os.environ.get("TESTARENA_DB", os.path.join(BASE_DIR, "testarena.db"))

# ── Test defaults ─────────────────────────────────────────────────────────────

REQUIRED_QUESTIONS       = int(os.environ.get("TESTARENA_REQUIRED_QUESTIONS", 100))
DEFAULT_NEGATIVE_MARKING = float(os.environ.get("TESTARENA_NEGATIVE_MARKING", 0.66))
DEFAULT_TOTAL_MARKS      = float(os.environ.get("TESTARENA_TOTAL_MARKS", 200))
DEFAULT_DURATION_MINUTES = int(os.environ.get("TESTARENA_DURATION_MINUTES", 120))

# When false, questions whose answer fell back to "A" are left out of scoring.
SCORE_UNRESOLVED_ANSWERS = _env_bool("TESTARENA_SCORE_UNRESOLVED", True)

# ── Ranking ───────────────────────────────────────────────────────────────────

RANK_BATCH_SIZE = int(os.environ.get("TESTARENA_RANK_BATCH_SIZE", 1000))

# ── OCR ───────────────────────────────────────────────────────────────────────

OCR_LANGUAGES = os.environ.get("TESTARENA_OCR_LANGS", "hin+eng")
OCR_DPI       = int(os.environ.get("TESTARENA_OCR_DPI", 300))

# ── Logging ───────────────────────────────────────────────────────────────────

LOG_LEVEL = os.environ.get("TESTARENA_LOG_LEVEL", "INFO").upper()


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Install a root handler once; library modules only call getLogger()."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


# ── JWT secret ────────────────────────────────────────────────────────────────

SECRET_FILE = os.environ.get("TESTARENA_SECRET_FILE", os.path.join(BASE_DIR, ".jwt_secret"))


def load_jwt_secret(path: str = SECRET_FILE) -> str:
    """SECRET_KEY from the environment, else the contents of ``path``.

    A missing or empty file is filled with a fresh owner-only token, so issued
    tokens stay valid across restarts.
    """
    from_env = os.environ.get("SECRET_KEY", "").strip()
    if from_env:
        return from_env
    try:
        with open(path, encoding="utf-8") as fh:
            stored = fh.read().strip()
    except FileNotFoundError:
        stored = ""
    if stored:
        return stored

    secret = secrets.token_urlsafe(48)
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(secret)
    except OSError as exc:
        logging.getLogger(__name__).warning(
            "JWT secret not persisted to %s (%s); tokens expire with this process", path, exc,
        )
    return secret


SECRET_KEY        = load_jwt_secret()
ALGORITHM         = "HS256"
TOKEN_EXPIRE_DAYS = 7
