"""Shared test fixtures."""
import logging
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import patch, MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from leadscore.database import Base, enable_sqlite_savepoints


# ── Redis ────────────────────────────────────────────────────────────────────

class FakeRedis:
    """Dict-backed stand-in for the Redis commands the circuit breaker uses."""

    def __init__(self):
        self.strings = {}
        self.hashes = {}

    def get(self, key):
        return self.strings.get(key)

    def set(self, key, value):
        self.strings[key] = str(value)

    def incr(self, key):
        self.strings[key] = str(int(self.strings.get(key) or 0) + 1)
        return int(self.strings[key])

    def delete(self, *keys):
        for key in keys:
            self.strings.pop(key, None)
            self.hashes.pop(key, None)

    def hset(self, key, field, value):
        self.hashes.setdefault(key, {})[field] = str(value)

    def hincrby(self, key, field, amount=1):
        bucket = self.hashes.setdefault(key, {})
        bucket[field] = str(int(bucket.get(field) or 0) + amount)

    def hgetall(self, key):
        return dict(self.hashes.get(key) or {})

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:
    """Queues commands and replays them against the FakeRedis on execute()."""

    def __init__(self, target):
        self.target = target
        self.queued = []

    def __getattr__(self, command):
        def _queue(*args):
            self.queued.append((command, args))
            return self
        return _queue

    def execute(self):
        results = [getattr(self.target, command)(*args) for command, args in self.queued]
        self.queued.clear()
        return results


@pytest.fixture
def fake_redis():
    """Fresh in-memory Redis per test."""
    return FakeRedis()


@pytest.fixture(autouse=True)
def breakers(fake_redis):
    """Register the classifier breaker against the in-memory Redis fake."""
    from leadscore.services.circuit_breaker import init_breakers, _registry
    _registry.clear()
    registered = init_breakers(fake_redis)
    yield registered
    _registry.clear()


@pytest.fixture
def db_engine():
    """Single-connection in-memory SQLite with SAVEPOINT support and the schema created."""
    engine = enable_sqlite_savepoints(create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    ))
    import leadscore.models.offer
    import leadscore.models.lead
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """One session shared by the test and every get_session() call it triggers."""
    session = sessionmaker(bind=db_engine)()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(autouse=True)
def patch_get_session(db_session):
    """Hand the shared test session to code that calls get_session().

    Routes close their session in `finally`; close() is a no-op here so the
    test can keep inspecting the same session afterwards.
    """
    real_close = db_session.close
    db_session.close = lambda: None
    try:
        with patch('leadscore.database.get_session', return_value=db_session):
            yield db_session
    finally:
        db_session.close = real_close


@pytest.fixture
def app(fake_redis):
    """Flask test app wired to the Redis fake and no classifier client."""
    root = logging.getLogger()
    original_level = root.level
    original_handlers = root.handlers[:]

    from leadscore import create_app
    with patch('leadscore.extensions.redis_client', fake_redis), \
            patch('leadscore.extensions.openai_client', None):
        app = create_app()
        app.config['TESTING'] = True
        yield app

    root.setLevel(original_level)
    root.handlers = original_handlers


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_offer(db_session):
    """Factory fixture — persists an Offer."""
    from leadscore.models.offer import Offer

    def _make(**overrides):
        defaults = dict(
            name='AI Outreach Automation',
            value_props=['24/7 outreach', '6x more meetings'],
            ideal_use_cases=['B2B SaaS mid-market'],
        )
        defaults.update(overrides)
        offer = Offer(**defaults)
        db_session.add(offer)
        db_session.commit()
        return offer
    return _make


@pytest.fixture
def make_lead(db_session):
    """Factory fixture — persists a Lead; created_at increases per call so order is stable."""
    from leadscore.models.lead import Lead
    counter = {'n': 0}
    base_time = datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)

    def _make(**overrides):
        counter['n'] += 1
        n = counter['n']
        defaults = dict(
            name=f'Lead {n}',
            email=f'lead{n}@example.com',
            role='Head of Growth',
            industry='B2B SaaS',
            company=f'Company {n}',
            created_at=base_time + timedelta(minutes=n),
        )
        defaults.update(overrides)
        lead = Lead(**defaults)
        db_session.add(lead)
        db_session.commit()
        return lead
    return _make


def _completion(text):
    """Chat completion response stand-in carrying `text` as the first choice."""
    response = MagicMock()
    response.choices[0].message.content = text
    return response


@pytest.fixture
def openai_mock():
    """MagicMock OpenAI client answering "High" unless reconfigured."""
    mock_client = MagicMock()
    mock_client.chat.completions.create.return_value = _completion(
        'High - the role and industry match the offer closely.'
    )
    return mock_client
