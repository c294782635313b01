"""
Centralized configuration — env vars and scoring constants.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Flask ────────────────────────────────────────────────────────────────────
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')

# ── Database ─────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///leadscore.db')

# ── Redis (circuit breaker state) ────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── Classifier oracle (OpenAI) ───────────────────────────────────────────────
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
CLASSIFIER_TIMEOUT_SECONDS = float(os.getenv('CLASSIFIER_TIMEOUT_SECONDS', '20'))
CLASSIFIER_MAX_TOKENS = int(os.getenv('CLASSIFIER_MAX_TOKENS', '150'))

# ── Scoring batches ──────────────────────────────────────────────────────────
DEFAULT_BATCH_LIMIT = int(os.getenv('DEFAULT_BATCH_LIMIT', '100'))
MAX_BATCH_LIMIT = int(os.getenv('MAX_BATCH_LIMIT', '500'))
# Stay under the gunicorn worker timeout; leads scored so far are still committed
BATCH_TIME_BUDGET_SECONDS = float(os.getenv('BATCH_TIME_BUDGET_SECONDS', '25'))

# ── Uploads ──────────────────────────────────────────────────────────────────
MAX_UPLOAD_BYTES = int(os.getenv('MAX_UPLOAD_BYTES', str(20 * 1024 * 1024)))
ALLOWED_CSV_MIME_TYPES = {
    'text/csv',
    'application/csv',
    'application/vnd.ms-excel',
}

# ── Summary buckets (final score 0-100) ──────────────────────────────────────
HIGH_INTENT_MIN_SCORE = 70
MEDIUM_INTENT_MIN_SCORE = 40
RECENT_LEADS_LIMIT = 5

# ── Listing ──────────────────────────────────────────────────────────────────
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
