"""
Offer persistence helpers — validation, CRUD and serialization.

Every write commits on the session it was given and rolls back on failure.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from leadscore.errors import (
    OfferInUseError, OfferNotFoundError, StorageTransactionError, ValidationError,
)
from leadscore.models.lead import Lead
from leadscore.models.offer import Offer

logger = logging.getLogger('services.offers')

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 100
LIST_FIELDS = ('value_props', 'ideal_use_cases')


def _clean_list(field, value, problems):
    if not isinstance(value, list) or not value:
        problems.append(f'{field} must be a non-empty list')
        return None
    if not all(isinstance(item, str) and item.strip() for item in value):
        problems.append(f'{field} must contain only non-empty strings')
        return None
    return [item.strip() for item in value]


def validate_offer_payload(payload, partial=False) -> dict:
    """
    Validate and normalize an offer body.

    With partial=True (updates) absent fields are left out of the result;
    present ones are validated the same way as on create.

    Raises:
        ValidationError: listing every failing field in `details`.
    """
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')

    problems = []
    cleaned = {}

    if 'name' in payload or not partial:
        name = payload.get('name')
        if not isinstance(name, str) or not name.strip():
            problems.append('name is required')
        elif not NAME_MIN_LENGTH <= len(name.strip()) <= NAME_MAX_LENGTH:
            problems.append(f'name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters')
        else:
            cleaned['name'] = name.strip()

    for field in LIST_FIELDS:
        if field in payload or not partial:
            items = _clean_list(field, payload.get(field), problems)
            if items is not None:
                cleaned[field] = items

    if problems:
        raise ValidationError('Validation failed', details=problems)
    if partial and not cleaned:
        raise ValidationError('No updatable fields provided')
    return cleaned


def serialize_offer(offer, lead_count=None) -> dict:
    data = {
        'id': offer.id,
        'name': offer.name,
        'value_props': list(offer.value_props or []),
        'ideal_use_cases': list(offer.ideal_use_cases or []),
        'created_at': offer.created_at.isoformat() if offer.created_at else None,
        'updated_at': offer.updated_at.isoformat() if offer.updated_at else None,
    }
    if lead_count is not None:
        data['leadCount'] = lead_count
    return data


def _commit(session, action):
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to %s offer", action, exc_info=True)
        raise StorageTransactionError(f'Failed to {action} offer') from e


def create_offer(session, payload) -> Offer:
    fields = validate_offer_payload(payload)
    offer = Offer(**fields)
    session.add(offer)
    _commit(session, 'create')
    logger.info("Created offer %s", offer.id, extra={'offer_id': offer.id})
    return offer


def get_offer(session, offer_id) -> Offer:
    offer = session.get(Offer, offer_id)
    if offer is None:
        raise OfferNotFoundError(offer_id)
    return offer


def list_offers(session):
    """All offers newest first, each paired with the number of leads scored against it."""
    lead_count = (
        select(func.count(Lead.id))
        .where(Lead.offer_id == Offer.id)
        .correlate(Offer)
        .scalar_subquery()
    )
    rows = session.execute(
        select(Offer, lead_count).order_by(Offer.created_at.desc(), Offer.id.desc())
    ).all()
    return [(offer, count) for offer, count in rows]


def update_offer(session, offer_id, payload) -> Offer:
    offer = get_offer(session, offer_id)
    for field, value in validate_offer_payload(payload, partial=True).items():
        setattr(offer, field, value)
    _commit(session, 'update')
    logger.info("Updated offer %s", offer.id, extra={'offer_id': offer.id})
    return offer


def delete_offer(session, offer_id) -> None:
    """
    Delete an offer that no scored lead references.

    Raises:
        OfferInUseError: leads were scored against it; their offer_id must keep
            pointing at the offer they were scored with.
    """
    offer = get_offer(session, offer_id)
    referenced = session.scalar(
        select(func.count(Lead.id)).where(Lead.offer_id == offer.id)
    )
    if referenced:
        logger.info("Refusing to delete offer %s: %d scored leads", offer_id, referenced,
                    extra={'offer_id': offer_id})
        raise OfferInUseError(offer_id, referenced)
    session.delete(offer)
    _commit(session, 'delete')
    logger.info("Deleted offer %s", offer_id, extra={'offer_id': offer_id})
