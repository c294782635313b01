"""
Redis-backed circuit breaker for the classifier oracle.

States:
  - CLOSED    → calls succeeding
  - OPEN      → `failure_threshold` consecutive failures
  - HALF_OPEN → `reset_timeout` elapsed since opening; the next success closes

The breaker tracks and reports; it never skips a call. Every lead still gets
its one classifier request; the state is reported on /api/health.

State lives in Redis so every gunicorn worker shares it. If Redis itself is
unreachable the breaker reports CLOSED and stops counting.
"""
import logging
import time

from redis.exceptions import RedisError

logger = logging.getLogger('services.circuit_breaker')

CLOSED = 'closed'
OPEN = 'open'
HALF_OPEN = 'half_open'


class CircuitBreaker:
    PREFIX = 'leadscore:cb'

    def __init__(self, name, redis_client, failure_threshold=5, reset_timeout=60):
        self.name = name
        self.redis = redis_client
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout

    def _key(self, suffix):
        return f'{self.PREFIX}:{self.name}:{suffix}'

    def _opened_at(self):
        value = self.redis.get(self._key('opened_at'))
        return float(value) if value else None

    @property
    def state(self):
        try:
            current = self.redis.get(self._key('state')) or CLOSED
            if current == OPEN:
                opened_at = self._opened_at()
                if opened_at is None or time.time() - opened_at >= self.reset_timeout:
                    self.redis.set(self._key('state'), HALF_OPEN)
                    return HALF_OPEN
            return current
        except RedisError:
            return CLOSED

    @property
    def failure_count(self):
        try:
            return int(self.redis.get(self._key('failures')) or 0)
        except RedisError:
            return 0

    def call(self, func, *args, **kwargs):
        """Run func and record the outcome; re-raises whatever func raises."""
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self._on_failure(e)
            raise
        self._on_success()
        return result

    def _on_success(self):
        try:
            pipe = self.redis.pipeline()
            pipe.set(self._key('state'), CLOSED)
            pipe.set(self._key('failures'), 0)
            pipe.hincrby(self._key('health'), 'success', 1)
            pipe.hset(self._key('health'), 'last_success', str(time.time()))
            pipe.execute()
        except RedisError:
            logger.debug("Redis unavailable, breaker '%s' success not recorded", self.name)

    def _on_failure(self, error):
        try:
            failures = self.redis.incr(self._key('failures'))
            pipe = self.redis.pipeline()
            pipe.hincrby(self._key('health'), 'failure', 1)
            pipe.hset(self._key('health'), 'last_failure', str(time.time()))
            pipe.hset(self._key('health'), 'last_error', str(error)[:200])
            pipe.execute()
        except RedisError:
            logger.debug("Redis unavailable, breaker '%s' failure not recorded", self.name)
            return

        if failures >= self.failure_threshold:
            try:
                self.redis.set(self._key('state'), OPEN)
                self.redis.set(self._key('opened_at'), str(time.time()))
            except RedisError:
                return
            logger.warning(
                "Circuit '%s' OPENED after %d failures (threshold=%d): %s",
                self.name, failures, self.failure_threshold, error,
            )
        else:
            logger.info("Circuit '%s' failure %d/%d: %s", self.name, failures, self.failure_threshold, error)

    def reset(self):
        """Force the breaker back to CLOSED."""
        try:
            pipe = self.redis.pipeline()
            pipe.set(self._key('state'), CLOSED)
            pipe.set(self._key('failures'), 0)
            pipe.delete(self._key('opened_at'))
            pipe.execute()
            logger.info("Circuit '%s' reset by operator", self.name)
        except RedisError as e:
            logger.error("Could not reset circuit '%s' in Redis: %s", self.name, e)

    def get_health(self):
        """Health snapshot for /api/health."""
        try:
            data = self.redis.hgetall(self._key('health')) or {}
        except RedisError:
            data = {}
        return {
            'name': self.name,
            'state': self.state,
            'failure_count': self.failure_count,
            'failure_threshold': self.failure_threshold,
            'reset_timeout': self.reset_timeout,
            'total_success': int(data.get('success', 0)),
            'total_failure': int(data.get('failure', 0)),
            'last_error': data.get('last_error', ''),
        }


# ── Registry ──────────────────────────────────────────────────────────────────

_registry = {}


def get_breaker(name, redis_client=None, **kwargs):
    """Get or create a named breaker (one per name per process)."""
    if name not in _registry:
        if redis_client is None:
            from leadscore.extensions import redis_client as rc
            redis_client = rc
        _registry[name] = CircuitBreaker(name, redis_client, **kwargs)
    return _registry[name]


def get_all_breakers():
    return dict(_registry)


def init_breakers(redis_client):
    """Register the breakers for every external service the app calls."""
    breakers = {
        'classifier': CircuitBreaker('classifier', redis_client, failure_threshold=5, reset_timeout=60),
    }
    _registry.update(breakers)
    return breakers
