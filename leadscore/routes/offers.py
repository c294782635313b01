"""
Offer routes — CRUD over the profiles leads are scored against.
"""
from flask import Blueprint, jsonify, request

from leadscore.services.offers import (
    create_offer, delete_offer, get_offer, list_offers, serialize_offer, update_offer,
)

bp = Blueprint('offers', __name__, url_prefix='/api/offers')


@bp.route('', methods=['POST'])
def create():
    from leadscore.database import get_session
    session = get_session()
    try:
        data = serialize_offer(create_offer(session, request.get_json(silent=True)))
    finally:
        session.close()
    return jsonify({'status': 'success', 'data': data}), 201


@bp.route('', methods=['GET'])
def index():
    from leadscore.database import get_session
    session = get_session()
    try:
        data = [serialize_offer(offer, lead_count=count) for offer, count in list_offers(session)]
    finally:
        session.close()
    return jsonify({'status': 'success', 'data': data})


@bp.route('/<int:offer_id>', methods=['GET'])
def show(offer_id):
    from leadscore.database import get_session
    session = get_session()
    try:
        data = serialize_offer(get_offer(session, offer_id))
    finally:
        session.close()
    return jsonify({'status': 'success', 'data': data})


@bp.route('/<int:offer_id>', methods=['PUT'])
def update(offer_id):
    from leadscore.database import get_session
    session = get_session()
    try:
        data = serialize_offer(update_offer(session, offer_id, request.get_json(silent=True)))
    finally:
        session.close()
    return jsonify({'status': 'success', 'data': data})


@bp.route('/<int:offer_id>', methods=['DELETE'])
def destroy(offer_id):
    from leadscore.database import get_session
    session = get_session()
    try:
        delete_offer(session, offer_id)
    finally:
        session.close()
    return jsonify({'status': 'success', 'message': 'Offer deleted'})
