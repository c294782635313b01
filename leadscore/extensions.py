"""
Shared client instances — Redis and the OpenAI classifier client.

Built once at import time from config. Importing this module is always safe:
the redis client connects lazily and the OpenAI client is None when no API key
is configured (every qualitative assessment then falls back to the default).
"""
import logging
import redis

from leadscore.config import REDIS_URL, OPENAI_API_KEY, CLASSIFIER_TIMEOUT_SECONDS

logger = logging.getLogger('leadscore.extensions')

# ── Redis ─────────────────────────────────────────────────────────────────────
redis_client = redis.from_url(
    REDIS_URL,
    decode_responses=True,
    socket_connect_timeout=1,
    socket_timeout=1,
)

# ── OpenAI ────────────────────────────────────────────────────────────────────
openai_client = None
if OPENAI_API_KEY:
    try:
        from openai import OpenAI
        openai_client = OpenAI(
            api_key=OPENAI_API_KEY,
            timeout=CLASSIFIER_TIMEOUT_SECONDS,
            max_retries=0,
        )
        logger.info("OpenAI client initialized successfully")
    except Exception as e:
        logger.error("Error initializing OpenAI client: %s", e)
else:
    logger.warning("OPENAI_API_KEY not set — qualitative scores will use the fallback")
