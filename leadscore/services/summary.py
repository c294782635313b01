"""
Summary Aggregator — read-only statistics over committed scoring results.
"""
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import case, func, select

from leadscore.config import HIGH_INTENT_MIN_SCORE, MEDIUM_INTENT_MIN_SCORE, RECENT_LEADS_LIMIT
from leadscore.models.lead import Lead


def _percentage(part, whole) -> int:
    if not whole:
        return 0
    pct = Decimal(part) * 100 / Decimal(whole)
    return int(pct.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _average(value) -> float:
    if value is None:
        return 0
    return float(Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def _bucket(count, processed):
    return {'count': count, 'percentage': _percentage(count, processed)}


def get_scoring_summary(session) -> dict:
    """Totals, score buckets and the most recently processed leads."""
    processed_only = Lead.is_processed.is_(True)

    def _count_where(condition):
        return func.coalesce(func.sum(case((processed_only & condition, 1), else_=0)), 0)

    row = session.execute(
        select(
            func.count(Lead.id),
            func.coalesce(func.sum(case((processed_only, 1), else_=0)), 0),
            func.avg(case((processed_only, Lead.score), else_=None)),
            _count_where(Lead.score >= HIGH_INTENT_MIN_SCORE),
            _count_where((Lead.score >= MEDIUM_INTENT_MIN_SCORE) & (Lead.score < HIGH_INTENT_MIN_SCORE)),
            _count_where(Lead.score < MEDIUM_INTENT_MIN_SCORE),
        )
    ).one()
    total, processed, average, high, medium, low = (
        int(row[0] or 0), int(row[1] or 0), row[2], int(row[3]), int(row[4]), int(row[5]),
    )

    recent = session.execute(
        select(Lead)
        .where(processed_only)
        .order_by(Lead.processed_at.desc(), Lead.id.desc())
        .limit(RECENT_LEADS_LIMIT)
    ).scalars().all()

    return {
        'totals': {
            'all': total,
            'processed': processed,
            'unprocessed': total - processed,
            'processedPercentage': _percentage(processed, total),
        },
        'scores': {
            'average': _average(average) if processed else 0,
            'high': _bucket(high, processed),
            'medium': _bucket(medium, processed),
            'low': _bucket(low, processed),
        },
        'recentLeads': [
            {
                'id': lead.id,
                'name': lead.name,
                'email': lead.email,
                'company': lead.company,
                'role': lead.role,
                'score': lead.score,
                'processed_at': lead.processed_at.isoformat() if lead.processed_at else None,
            }
            for lead in recent
        ],
    }
