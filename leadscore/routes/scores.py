"""
Scoring routes — run a scoring batch, read the summary.
"""
import logging
import threading

from flask import Blueprint, jsonify, request

from leadscore.config import BATCH_TIME_BUDGET_SECONDS
from leadscore.errors import ValidationError
from leadscore.pipeline.batch import coerce_batch_limit, process_batch
from leadscore.services.summary import get_scoring_summary

logger = logging.getLogger('routes.scores')

bp = Blueprint('scores', __name__, url_prefix='/api/scores')


def _offer_id(value) -> int:
    if value is None or value == '':
        raise ValidationError('offerId is required')
    if isinstance(value, bool):
        raise ValidationError('offerId must be an integer')
    try:
        offer_id = int(value)
    except (TypeError, ValueError):
        raise ValidationError('offerId must be an integer')
    if offer_id < 1:
        raise ValidationError('offerId must be a positive integer')
    return offer_id


@bp.route('/process', methods=['POST'])
def process():
    """
    Score up to `limit` unprocessed leads against `offerId`.

    A timer sets the batch's cancel event once BATCH_TIME_BUDGET_SECONDS have
    passed; the batch then stops starting new leads and commits what it scored.
    WSGI gives no signal when the client disconnects, so the budget is the only
    cancellation source on this path.
    """
    body = request.get_json(silent=True) or {}
    offer_id = _offer_id(body.get('offerId'))
    limit = coerce_batch_limit(body.get('limit'))

    from leadscore.database import get_session
    from leadscore.extensions import openai_client
    cancel = threading.Event()
    deadline = threading.Timer(BATCH_TIME_BUDGET_SECONDS, cancel.set)
    deadline.daemon = True
    session = get_session()
    deadline.start()
    try:
        result = process_batch(session, offer_id, limit, openai_client, cancel_event=cancel)
    finally:
        deadline.cancel()
        session.close()

    message = f'Processed {result.processed} leads'
    if result.cancelled:
        logger.warning("Batch %s hit the %ss time budget", result.batch_id, BATCH_TIME_BUDGET_SECONDS,
                       extra={'batch_id': result.batch_id, 'offer_id': offer_id})
        message += ' (time budget reached, run again for the remaining leads)'

    return jsonify({
        'status': 'success',
        'message': message,
        'data': result.to_dict(),
    })


@bp.route('/summary', methods=['GET'])
def summary():
    from leadscore.database import get_session
    session = get_session()
    try:
        data = get_scoring_summary(session)
    finally:
        session.close()
    return jsonify({'status': 'success', 'data': data})
