"""
Batch Processor — scores a bounded set of unprocessed leads against one offer.

    SELECTING → SCORING → COMMITTING → COMMITTED
        │                     │
        └──────→ ABORTED ←────┘

The session passed in is the batch's unit of work: selection, every per-lead
write and the final commit all happen on it, and only this module commits or
rolls it back. Per-lead writes run inside SAVEPOINTs so one failing lead is
skipped without touching the others; a failed final commit rolls back the
whole batch and every lead stays unprocessed.
"""
import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from leadscore.config import DEFAULT_BATCH_LIMIT, MAX_BATCH_LIMIT
from leadscore.errors import OfferNotFoundError, StorageTransactionError, ValidationError
from leadscore.models.lead import Lead
from leadscore.models.offer import Offer
from leadscore.pipeline.combiner import combine_scores, commit_score
from leadscore.pipeline.qualitative import assess_lead
from leadscore.pipeline.rules import score_rules

logger = logging.getLogger('pipeline.batch')


class BatchState(str, Enum):
    SELECTING = 'selecting'
    SCORING = 'scoring'
    COMMITTING = 'committing'
    COMMITTED = 'committed'
    ABORTED = 'aborted'


@dataclass
class BatchResult:
    batch_id: str
    offer_id: Any
    state: BatchState = BatchState.SELECTING
    lead_ids: List[int] = field(default_factory=list)
    total_score: int = 0
    skipped: List[Dict[str, Any]] = field(default_factory=list)
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return len(self.lead_ids)

    @property
    def average_score(self) -> float:
        if not self.lead_ids:
            return 0
        avg = Decimal(self.total_score) / Decimal(len(self.lead_ids))
        return float(avg.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'processed': self.processed,
            'totalScore': self.total_score,
            'averageScore': self.average_score,
            'leadIds': list(self.lead_ids),
        }


def coerce_batch_limit(value) -> int:
    """Validate the requested batch size; None means the default."""
    if value is None or value == '':
        return DEFAULT_BATCH_LIMIT
    if isinstance(value, bool):
        raise ValidationError('limit must be an integer')
    try:
        limit = int(value)
    except (TypeError, ValueError):
        raise ValidationError('limit must be an integer')
    if limit < 1 or limit > MAX_BATCH_LIMIT:
        raise ValidationError(f'limit must be between 1 and {MAX_BATCH_LIMIT}')
    return limit


def select_unprocessed_leads(session, limit: int) -> List[Lead]:
    """
    Claim up to `limit` unprocessed leads, oldest first.

    FOR UPDATE SKIP LOCKED keeps concurrent batches on disjoint rows where the
    database supports it (SQLite ignores the clause; it serializes writers).
    """
    return (
        session.query(Lead)
        .filter(Lead.is_processed.is_(False))
        .order_by(Lead.created_at.asc(), Lead.id.asc())
        .limit(limit)
        .with_for_update(skip_locked=True)
        .all()
    )


def score_lead(lead, offer, client):
    """Rule + qualitative + combine for one lead. Returns (final_score, reason)."""
    rule = score_rules(lead, offer)
    ai = assess_lead(lead, offer, client)
    return combine_scores(rule, ai)


def process_batch(session, offer_id, limit: int, client, cancel_event=None, now=None) -> BatchResult:
    """
    Run one scoring batch to COMMITTED, or raise after rolling back.

    Args:
        session:      unit of work; committed or rolled back here
        offer_id:     Offer to score against
        limit:        max leads to claim
        client:       classifier client handle (None → every lead gets the fallback)
        cancel_event: optional threading.Event; once set no new lead starts

    Raises:
        OfferNotFoundError: the offer does not exist (nothing mutated).
        StorageTransactionError: selection or the final commit failed.
    """
    result = BatchResult(batch_id=uuid.uuid4().hex[:12], offer_id=offer_id)
    ctx = {'batch_id': result.batch_id, 'offer_id': offer_id}

    # ── SELECTING ────────────────────────────────────────────────────────────
    try:
        offer = session.get(Offer, offer_id)
        if offer is None:
            raise OfferNotFoundError(offer_id)
        leads = select_unprocessed_leads(session, limit)
    except OfferNotFoundError:
        session.rollback()
        result.state = BatchState.ABORTED
        logger.warning("Batch aborted: offer %s not found", offer_id, extra=ctx)
        raise
    except SQLAlchemyError as e:
        session.rollback()
        result.state = BatchState.ABORTED
        logger.error("Batch aborted: lead selection failed", exc_info=True, extra=ctx)
        raise StorageTransactionError('Failed to select leads for scoring') from e

    if not leads:
        session.rollback()
        result.state = BatchState.COMMITTED
        logger.info("No unprocessed leads found", extra=ctx)
        return result

    logger.info("Scoring %d leads", len(leads), extra=ctx)

    # ── SCORING ──────────────────────────────────────────────────────────────
    result.state = BatchState.SCORING
    for lead in leads:
        if cancel_event is not None and cancel_event.is_set():
            result.cancelled = True
            logger.warning("Batch cancelled after %d leads", result.processed, extra=ctx)
            break

        lead_id = lead.id
        try:
            final_score, reason = score_lead(lead, offer, client)
            with session.begin_nested():
                commit_score(session, lead_id, offer.id, final_score, reason, now=now)
        except Exception as e:
            logger.error("Error processing lead %s, leaving it unprocessed", lead_id,
                         exc_info=True, extra={**ctx, 'lead_id': lead_id})
            result.skipped.append({'leadId': lead_id, 'error': str(e)})
            continue

        result.lead_ids.append(lead_id)
        result.total_score += final_score

    # ── COMMITTING ───────────────────────────────────────────────────────────
    result.state = BatchState.COMMITTING
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        result.state = BatchState.ABORTED
        logger.error("Batch aborted: commit failed, %d lead updates rolled back",
                     result.processed, exc_info=True, extra=ctx)
        raise StorageTransactionError('Failed to commit scoring batch') from e

    result.state = BatchState.COMMITTED
    logger.info("Processed %d leads with average score: %s (%d skipped)",
                result.processed, result.average_score, len(result.skipped), extra=ctx)
    return result
