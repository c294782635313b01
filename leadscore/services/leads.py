"""
Lead listing, lookup, deletion and results export.
"""
import csv
import io
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from leadscore.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from leadscore.errors import LeadNotFoundError, NotFoundError, StorageTransactionError, ValidationError
from leadscore.models.lead import Lead

logger = logging.getLogger('services.leads')

SORTABLE_FIELDS = {
    'created_at': Lead.created_at,
    'processed_at': Lead.processed_at,
    'score': Lead.score,
    'name': Lead.name,
    'email': Lead.email,
    'company': Lead.company,
}

EXPORT_COLUMNS = [
    ('Name', 'name'),
    ('Email', 'email'),
    ('Role', 'role'),
    ('Company', 'company'),
    ('Industry', 'industry'),
    ('Score', 'score'),
    ('Score Reason', 'score_reason'),
    ('Processed At', 'processed_at'),
]


def serialize_lead(lead) -> dict:
    return {
        'id': lead.id,
        'name': lead.name,
        'email': lead.email,
        'role': lead.role,
        'industry': lead.industry,
        'company': lead.company,
        'linkedin': lead.linkedin,
        'phone': lead.phone,
        'score': lead.score,
        'score_reason': lead.score_reason,
        'is_processed': lead.is_processed,
        'processed_at': lead.processed_at.isoformat() if lead.processed_at else None,
        'offer_id': lead.offer_id,
        'created_at': lead.created_at.isoformat() if lead.created_at else None,
    }


# ── Query parameters ─────────────────────────────────────────────────────────

def parse_pagination(page=None, limit=None):
    """(page, limit) from raw query args; page >= 1, 1 <= limit <= MAX_PAGE_SIZE."""
    try:
        page = int(page) if page not in (None, '') else 1
        limit = int(limit) if limit not in (None, '') else DEFAULT_PAGE_SIZE
    except (TypeError, ValueError):
        raise ValidationError('page and limit must be integers')
    if page < 1:
        raise ValidationError('page must be at least 1')
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f'limit must be between 1 and {MAX_PAGE_SIZE}')
    return page, limit


def parse_sort(sort, default='-created_at'):
    """Order-by clause for "field" / "-field"; only SORTABLE_FIELDS are accepted."""
    sort = (sort or default).strip()
    descending = sort.startswith('-')
    column = SORTABLE_FIELDS.get(sort.lstrip('-'))
    if column is None:
        raise ValidationError(
            f"Invalid sort field. Allowed: {', '.join(sorted(SORTABLE_FIELDS))}"
        )
    return column.desc() if descending else column.asc()


def _paginate(session, query, order_by, page, limit):
    total = session.execute(select(func.count()).select_from(query.subquery())).scalar_one()
    leads = session.execute(
        query.order_by(order_by, Lead.id.asc()).offset((page - 1) * limit).limit(limit)
    ).scalars().all()
    return {
        'items': [serialize_lead(lead) for lead in leads],
        'pagination': {
            'total': total,
            'page': page,
            'limit': limit,
            'pages': (total + limit - 1) // limit,
        },
    }


# ── Leads ────────────────────────────────────────────────────────────────────

def list_leads(session, page=None, limit=None, sort=None) -> dict:
    page, limit = parse_pagination(page, limit)
    return _paginate(session, select(Lead), parse_sort(sort), page, limit)


def get_lead(session, lead_id) -> Lead:
    lead = session.get(Lead, lead_id)
    if lead is None:
        raise LeadNotFoundError(lead_id)
    return lead


def delete_lead(session, lead_id) -> None:
    lead = get_lead(session, lead_id)
    session.delete(lead)
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to delete lead %s", lead_id, exc_info=True, extra={'lead_id': lead_id})
        raise StorageTransactionError('Failed to delete lead') from e
    logger.info("Deleted lead %s", lead_id, extra={'lead_id': lead_id})


# ── Results ──────────────────────────────────────────────────────────────────

def list_results(session, page=None, limit=None, sort=None) -> dict:
    """Processed leads only, highest score first unless told otherwise."""
    page, limit = parse_pagination(page, limit)
    query = select(Lead).where(Lead.is_processed.is_(True))
    return _paginate(session, query, parse_sort(sort, default='-score'), page, limit)


def export_results_csv(session) -> str:
    """
    Render every processed lead as CSV text, highest score first.

    Raises:
        NotFoundError: nothing has been processed yet.
    """
    leads = session.execute(
        select(Lead)
        .where(Lead.is_processed.is_(True))
        .order_by(Lead.score.desc(), Lead.id.asc())
    ).scalars().all()
    if not leads:
        raise NotFoundError('No processed leads found')

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow([header for header, _ in EXPORT_COLUMNS])
    for lead in leads:
        row = []
        for _, attr in EXPORT_COLUMNS:
            value = getattr(lead, attr)
            if attr == 'processed_at':
                value = value.isoformat() if value else ''
            row.append(value)
        writer.writerow(row)
    return buf.getvalue()
