"""
Database engine + session factory.

Defaults to SQLite for local dev, Postgres in production. A session is the unit
of work for one request: callers that write own the commit/rollback.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from leadscore.config import DATABASE_URL


class Base(DeclarativeBase):
    pass


def enable_sqlite_savepoints(engine):
    """
    Let SQLAlchemy own BEGIN/COMMIT on pysqlite connections.

    The pysqlite driver defers BEGIN until the first DML statement, which breaks
    SAVEPOINT nesting and makes rollback of an outer transaction unreliable.
    """
    @event.listens_for(engine, 'connect')
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, 'begin')
    def _emit_begin(conn):
        conn.exec_driver_sql('BEGIN')

    return engine


# Railway/Heroku inject postgres:// but SQLAlchemy 2.x requires postgresql://
url = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

if url.startswith('sqlite'):
    engine = enable_sqlite_savepoints(
        create_engine(url, connect_args={'check_same_thread': False})
    )
else:
    engine = create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)

SessionLocal = sessionmaker(bind=engine)


def get_session():
    """Return a new DB session."""
    return SessionLocal()
