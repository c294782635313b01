"""Create offers and leads tables

Revision ID: 1f3b9c0d2e7a
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1f3b9c0d2e7a'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'offers',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('value_props', sa.JSON(), nullable=False),
        sa.Column('ideal_use_cases', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'leads',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('role', sa.Text(), nullable=False),
        sa.Column('industry', sa.Text(), nullable=False),
        sa.Column('company', sa.Text(), nullable=False, server_default=''),
        sa.Column('linkedin', sa.Text(), nullable=False, server_default=''),
        sa.Column('phone', sa.Text(), nullable=False, server_default=''),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('score_reason', sa.Text(), nullable=False, server_default=''),
        sa.Column('is_processed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('offer_id', sa.Integer(), sa.ForeignKey('offers.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('email', name='uq_leads_email'),
        sa.CheckConstraint('score >= 0 AND score <= 100', name='ck_lead_score_range'),
    )
    op.create_index('ix_leads_is_processed', 'leads', ['is_processed'])
    op.create_index('ix_leads_score', 'leads', ['score'])
    op.create_index('ix_leads_processed_at', 'leads', ['processed_at'])


def downgrade() -> None:
    op.drop_index('ix_leads_processed_at', table_name='leads')
    op.drop_index('ix_leads_score', table_name='leads')
    op.drop_index('ix_leads_is_processed', table_name='leads')
    op.drop_table('leads')
    op.drop_table('offers')
