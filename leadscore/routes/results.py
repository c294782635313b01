"""
Results routes — processed leads as JSON pages or a CSV download.
"""
from datetime import datetime

from flask import Blueprint, Response, jsonify, request

from leadscore.services.leads import export_results_csv, list_results

bp = Blueprint('results', __name__, url_prefix='/api/results')


@bp.route('', methods=['GET'])
def index():
    from leadscore.database import get_session
    session = get_session()
    try:
        data = list_results(
            session,
            page=request.args.get('page'),
            limit=request.args.get('limit'),
            sort=request.args.get('sort'),
        )
    finally:
        session.close()
    return jsonify({'status': 'success', 'data': data})


@bp.route('/export', methods=['GET'])
def export():
    from leadscore.database import get_session
    session = get_session()
    try:
        csv_text = export_results_csv(session)
    finally:
        session.close()

    filename = f"lead-scores-{datetime.now().strftime('%Y%m%d')}.csv"
    return Response(
        csv_text,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'},
    )
