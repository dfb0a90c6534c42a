"""
Period closures: locked date ranges that freeze their transactions

Revision ID: 0002_period_closures
Revises: 0001_initial
Create Date: 2024-04-02 10:00:00
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0002_period_closures'
down_revision = '0001_initial'
branch_labels = None
depends_on = None


def upgrade() -> None:
    closure_type = sa.Enum('MONTHLY', 'ANNUAL', name='closure_type')

    op.create_table(
        'period_closure',
        sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('period_start', sa.Date(), nullable=False),
        sa.Column('period_end', sa.Date(), nullable=False),
        sa.Column('closure_type', closure_type, nullable=False, server_default='MONTHLY'),
        sa.Column('is_locked', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('closed_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('unlocked_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.UniqueConstraint('user_id', 'period_start', 'period_end', name='uq_period_closure_range'),
        sa.CheckConstraint('period_end >= period_start', name='ck_period_closure_range'),
    )
    op.create_index('ix_period_closure_user_id', 'period_closure', ['user_id'])
    op.create_index('ix_period_closure_user_locked', 'period_closure', ['user_id', 'is_locked'])


def downgrade() -> None:
    op.drop_index('ix_period_closure_user_locked', table_name='period_closure')
    op.drop_index('ix_period_closure_user_id', table_name='period_closure')
    op.drop_table('period_closure')
