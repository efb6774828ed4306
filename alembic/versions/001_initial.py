# alembic/versions/001_initial.py

"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Create strategy table
    op.create_table('strategy',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('writer_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_strategy_writer_id', 'strategy', ['writer_id'])

    # Create daily_statistics table
    op.create_table('daily_statistics',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('strategy_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('dep_wd_amount', sa.Numeric(precision=19, scale=4), nullable=True),
        sa.Column('daily_profit_loss', sa.Numeric(precision=19, scale=4), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['strategy_id'], ['strategy.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_daily_statistics_strategy_date', 'daily_statistics', ['strategy_id', 'date'], unique=True
    )

    # Create monthly_statistics table
    op.create_table('monthly_statistics',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('strategy_id', sa.Integer(), nullable=False),
        sa.Column('analysis_month', sa.String(length=7), nullable=False),
        sa.Column('average_principal', sa.Numeric(precision=38, scale=4), nullable=False),
        sa.Column('net_flow', sa.Numeric(precision=38, scale=4), nullable=False),
        sa.Column('monthly_profit_loss', sa.Numeric(precision=38, scale=4), nullable=False),
        sa.Column('monthly_return', sa.Numeric(), nullable=False),
        sa.Column('cumulative_profit_loss', sa.Numeric(precision=38, scale=4), nullable=False),
        sa.Column('cumulative_return', sa.Numeric(), nullable=False),
        sa.Column('closing_principal', sa.Numeric(precision=38, scale=8), nullable=False),
        sa.Column('closing_reference_price', sa.Numeric(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['strategy_id'], ['strategy.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_monthly_statistics_strategy_month',
        'monthly_statistics',
        ['strategy_id', 'analysis_month'],
        unique=True
    )


def downgrade():
    op.drop_index('ix_monthly_statistics_strategy_month', table_name='monthly_statistics')
    op.drop_table('monthly_statistics')
    op.drop_index('ix_daily_statistics_strategy_date', table_name='daily_statistics')
    op.drop_table('daily_statistics')
    op.drop_index('ix_strategy_writer_id', table_name='strategy')
    op.drop_table('strategy')
