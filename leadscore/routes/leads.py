"""
Lead routes — CSV upload, listing, lookup and deletion.
"""
import logging

from flask import Blueprint, jsonify, request

from leadscore.config import ALLOWED_CSV_MIME_TYPES, MAX_UPLOAD_BYTES
from leadscore.errors import PayloadTooLargeError, UnsupportedMediaTypeError, ValidationError
from leadscore.pipeline.ingest import ingest_csv
from leadscore.services.leads import delete_lead, get_lead, list_leads, serialize_lead

logger = logging.getLogger('routes.leads')

bp = Blueprint('leads', __name__, url_prefix='/api/leads')


def _is_csv(upload) -> bool:
    if upload.mimetype in ALLOWED_CSV_MIME_TYPES:
        return True
    return (upload.filename or '').lower().endswith('.csv')


@bp.route('/upload', methods=['POST'])
def upload_leads():
    """Ingest a multipart CSV upload (field name: file)."""
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        raise ValidationError('No file uploaded')
    if not _is_csv(upload):
        raise UnsupportedMediaTypeError('Only CSV files are allowed')

    payload = upload.read(MAX_UPLOAD_BYTES + 1)
    if len(payload) > MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError('File size too large')

    from leadscore.database import get_session
    session = get_session()
    try:
        result = ingest_csv(session, payload)
    finally:
        session.close()

    logger.info("Upload %s: %d rows, %d inserted", upload.filename, result.row_count, result.inserted_count)
    return jsonify({
        'status': 'success',
        'message': f'Processed {result.row_count} rows, inserted {result.inserted_count} leads',
        'data': result.to_dict(),
    }), 200


@bp.route('', methods=['GET'])
def index():
    from leadscore.database import get_session
    session = get_session()
    try:
        data = list_leads(
            session,
            page=request.args.get('page'),
            limit=request.args.get('limit'),
            sort=request.args.get('sort'),
        )
    finally:
        session.close()
    return jsonify({'status': 'success', 'data': data})


@bp.route('/<int:lead_id>', methods=['GET'])
def show(lead_id):
    from leadscore.database import get_session
    session = get_session()
    try:
        data = serialize_lead(get_lead(session, lead_id))
    finally:
        session.close()
    return jsonify({'status': 'success', 'data': data})


@bp.route('/<int:lead_id>', methods=['DELETE'])
def destroy(lead_id):
    from leadscore.database import get_session
    session = get_session()
    try:
        delete_lead(session, lead_id)
    finally:
        session.close()
    return '', 204
