"""
Lead model — one row per prospect, unique by lower-cased email.

Score columns stay at their defaults until a scoring batch claims the lead;
the claim flips is_processed and fills score/score_reason/processed_at/offer_id
in a single UPDATE.
"""
from sqlalchemy import (
    Column, Integer, Text, Boolean, DateTime, ForeignKey, CheckConstraint, Index,
)
from sqlalchemy.sql import func

from leadscore.database import Base


class Lead(Base):
    __tablename__ = 'leads'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True)  # stored lower-cased
    role = Column(Text, nullable=False)
    industry = Column(Text, nullable=False)
    company = Column(Text, nullable=False, default='')
    linkedin = Column(Text, nullable=False, default='')
    phone = Column(Text, nullable=False, default='')
    score = Column(Integer, nullable=False, default=0)
    score_reason = Column(Text, nullable=False, default='')
    is_processed = Column(Boolean, nullable=False, default=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    offer_id = Column(Integer, ForeignKey('offers.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('score >= 0 AND score <= 100', name='ck_lead_score_range'),
        Index('ix_leads_is_processed', 'is_processed'),
        Index('ix_leads_score', 'score'),
        Index('ix_leads_processed_at', 'processed_at'),
    )
