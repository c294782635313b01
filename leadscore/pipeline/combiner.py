"""
Score Combiner — merges the rule and qualitative sub-scores and records the
result on the lead.

Rounding: the weighted sum is rounded half-up with Decimal (17.5 → 18), never
with Python's round(), which rounds ties to even.
"""
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple

from sqlalchemy import update

from leadscore.errors import LeadAlreadyClaimedError
from leadscore.models.lead import Lead
from leadscore.pipeline.base import ScoreOutcome

RULE_WEIGHT = Decimal('0.5')
AI_WEIGHT = Decimal('0.5')


def round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def combine_scores(rule: ScoreOutcome, ai: ScoreOutcome) -> Tuple[int, str]:
    """Final 0-100 score and the combined rationale."""
    weighted = Decimal(rule.score) * RULE_WEIGHT + Decimal(ai.score) * AI_WEIGHT
    final = min(max(round_half_up(weighted), 0), 100)
    return final, f'Rule-based: {rule.reason} | AI: {ai.reason}'


def commit_score(session, lead_id: int, offer_id: int, score: int, reason: str, now=None) -> None:
    """
    Flip one lead to processed in a single conditional UPDATE.

    Only matches while is_processed is still false, so a lead can be claimed
    once. Does not commit.

    Raises:
        LeadAlreadyClaimedError: the lead was processed (or deleted) meanwhile.
    """
    result = session.execute(
        update(Lead)
        .where(Lead.id == lead_id, Lead.is_processed.is_(False))
        .values(
            is_processed=True,
            score=score,
            score_reason=reason,
            processed_at=now or datetime.now(timezone.utc),
            offer_id=offer_id,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise LeadAlreadyClaimedError(lead_id)
