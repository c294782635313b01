"""
Shared pipeline value types.

LeadRecord is the canonical shape of a validated CSV row, RowRejection the
tagged alternative for a row that failed validation, and ScoreOutcome the
(sub-score, rationale) pair both scorers hand to the combiner.
"""
from dataclasses import dataclass, field, asdict
from typing import Dict, Any, Optional


@dataclass(frozen=True)
class ScoreOutcome:
    """One scorer's contribution: an integer sub-score plus its rationale."""
    score: int
    reason: str


@dataclass(frozen=True)
class LeadRecord:
    """A validated lead, ready to insert. Score fields sit at their defaults."""
    name: str
    email: str
    role: str
    industry: str
    company: str = ''
    linkedin: str = ''
    phone: str = ''
    score: int = 0
    score_reason: str = ''
    is_processed: bool = False

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RowRejection:
    """A CSV row the validator refused, with its 1-based position."""
    row: int
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Exception] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'row': self.row, 'message': self.message, 'data': self.data}
