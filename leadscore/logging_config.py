"""
Log setup for the API process.

create_app() calls configure_logging() once. LOG_FORMAT=json emits one object
per line for log shippers; anything else gives a readable text line. Pipeline
code passes scoring context via `extra=` (batch_id, offer_id, lead_id, row) and
both formatters render it.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone


CONTEXT_FIELDS = ('batch_id', 'offer_id', 'lead_id', 'row')

QUIET_LOGGERS = ('urllib3', 'openai', 'httpcore', 'httpx', 'werkzeug', 'sqlalchemy.engine')

TEXT_FORMAT = '%(asctime)s %(levelname)-7s %(name)s: %(message)s'


def _context(record):
    return {name: getattr(record, name) for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with scoring context when present."""

    def format(self, record):
        payload = dict(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            **_context(record),
        )
        if record.exc_info and record.exc_info[0] is not None:
            payload['exception'] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ContextTextFormatter(logging.Formatter):
    """Text formatter that appends key=value scoring context."""

    def format(self, record):
        line = super().format(record)
        context = _context(record)
        if not context:
            return line
        pairs = ' '.join(f'{key}={value}' for key, value in context.items())
        return f'{line} [{pairs}]'


def _resolve_level():
    level = logging.getLevelName(os.getenv('LOG_LEVEL', 'INFO').upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(app=None):
    """
    Point the root logger at stderr using LOG_LEVEL / LOG_FORMAT.

    Calling it again replaces the handler instead of adding a second one.
    """
    level = _resolve_level()

    if os.getenv('LOG_FORMAT', 'text').lower() == 'json':
        formatter = JSONFormatter()
    else:
        formatter = ContextTextFormatter(TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    stream = logging.StreamHandler(sys.stderr)
    stream.setLevel(level)
    stream.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [stream]
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if app is not None:
        app.logger.setLevel(level)
