"""
Initial schema: user, account, category, transaction

Revision ID: 0001_initial
Revises:
Create Date: 2024-03-01 09:00:00
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # SAEnum stores member names; on SQLite these become CHECK-constrained TEXT
    account_type = sa.Enum('CHECKING', 'SAVINGS', 'CREDIT', 'INVESTMENT', 'MEAL_VOUCHER', name='account_type')
    category_type = sa.Enum('INCOME', 'EXPENSE', 'BOTH', name='category_type')
    txn_type = sa.Enum('INCOME', 'EXPENSE', 'TRANSFER', name='txn_type')
    txn_status = sa.Enum('PENDING', 'COMPLETED', name='txn_status')

    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False, unique=True),
        sa.Column('display_name', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
    )

    op.create_table(
        'account',
        sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('type', account_type, nullable=False),
        sa.Column('initial_balance', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('balance', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('limit_amount', sa.BigInteger(), nullable=True),
        sa.Column('closing_date', sa.Integer(), nullable=True),
        sa.Column('due_date', sa.Integer(), nullable=True),
        sa.Column('color', sa.String(length=7), nullable=False, server_default='#6B7280'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.UniqueConstraint('user_id', 'name', name='uq_account_user_name'),
        sa.CheckConstraint('closing_date IS NULL OR (closing_date BETWEEN 1 AND 31)', name='ck_account_closing_day'),
        sa.CheckConstraint('due_date IS NULL OR (due_date BETWEEN 1 AND 31)', name='ck_account_due_day'),
    )
    op.create_index('ix_account_user_id', 'account', ['user_id'])

    op.create_table(
        'category',
        sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('type', category_type, nullable=False),
        sa.Column('color', sa.String(length=7), nullable=False, server_default='#6B7280'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.UniqueConstraint('user_id', 'name', 'type', name='uq_category_user_name_type'),
    )
    op.create_index('ix_category_user_id', 'category', ['user_id'])

    op.create_table(
        'transaction',
        sa.Column('id', sa.String(length=36), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('description', sa.String(length=200), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('type', txn_type, nullable=False),
        sa.Column('status', txn_status, nullable=False, server_default='PENDING'),
        sa.Column('account_id', sa.String(length=36), sa.ForeignKey('account.id'), nullable=False),
        sa.Column('category_id', sa.String(length=36), sa.ForeignKey('category.id', ondelete='SET NULL'), nullable=True),
        sa.Column(
            'parent_transaction_id',
            sa.String(length=36),
            sa.ForeignKey('transaction.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('installments', sa.Integer(), nullable=True),
        sa.Column('current_installment', sa.Integer(), nullable=True),
        sa.Column('is_fixed', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('to_account_id', sa.String(length=36), sa.ForeignKey('account.id'), nullable=True),
        sa.Column(
            'linked_transaction_id',
            sa.String(length=36),
            sa.ForeignKey('transaction.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('invoice_month', sa.String(length=7), nullable=True),
        sa.Column('invoice_month_overridden', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('(CURRENT_TIMESTAMP)')),
        # One occurrence per series per date; blocks duplicate generation
        sa.UniqueConstraint('parent_transaction_id', 'date', name='uq_transaction_parent_date'),
        sa.CheckConstraint(
            'installments IS NULL OR (current_installment BETWEEN 1 AND installments)',
            name='ck_transaction_installment_range',
        ),
    )
    op.create_index('ix_transaction_parent_transaction_id', 'transaction', ['parent_transaction_id'])
    op.create_index('ix_transaction_user_date', 'transaction', ['user_id', 'date'])
    op.create_index('ix_transaction_account_status', 'transaction', ['account_id', 'status'])


def downgrade() -> None:
    op.drop_index('ix_transaction_account_status', table_name='transaction')
    op.drop_index('ix_transaction_user_date', table_name='transaction')
    op.drop_index('ix_transaction_parent_transaction_id', table_name='transaction')
    op.drop_table('transaction')
    op.drop_index('ix_category_user_id', table_name='category')
    op.drop_table('category')
    op.drop_index('ix_account_user_id', table_name='account')
    op.drop_table('account')
    op.drop_table('user')
