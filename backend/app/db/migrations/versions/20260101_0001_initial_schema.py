"""Initial policy records schema.

Revision ID: 0001
Revises:
Create Date: 2026-01-01

Creates the five record tables, policies, scheduled messages and the
ingestion run audit table.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'agents',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('agent_name', sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_agents_agent_name', 'agents', ['agent_name'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('first_name', sa.String(255), nullable=False),
        sa.Column('last_name', sa.String(255), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        sa.Column('street', sa.String(255), nullable=False),
        sa.Column('city', sa.String(120), nullable=False),
        sa.Column('state', sa.String(120), nullable=False),
        sa.Column('zip_code', sa.String(20), nullable=False),
        sa.Column('phone_number', sa.String(50), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('gender', sa.String(10), nullable=False,
                  comment='Male | Female | Other'),
        sa.Column('user_type', sa.String(100), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_users_first_name', 'users', ['first_name'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'user_accounts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('account_name', sa.String(255), nullable=False),
        sa.Column('user_id', sa.Uuid(),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('account_name', 'user_id', name='uq_user_accounts_name_user'),
    )
    op.create_index('ix_user_accounts_user_id', 'user_accounts', ['user_id'])

    op.create_table(
        'policy_categories',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('category_name', sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_policy_categories_category_name', 'policy_categories', ['category_name'], unique=True)

    op.create_table(
        'policy_carriers',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('company_name', sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_policy_carriers_company_name', 'policy_carriers', ['company_name'], unique=True)

    op.create_table(
        'policies',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('policy_number', sa.String(100), nullable=False),
        sa.Column('policy_start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('policy_end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('category_id', sa.Uuid(), sa.ForeignKey('policy_categories.id'), nullable=False),
        sa.Column('company_id', sa.Uuid(), sa.ForeignKey('policy_carriers.id'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('policy_start_date < policy_end_date', name='ck_policies_date_order'),
    )
    op.create_index('ix_policies_policy_number', 'policies', ['policy_number'], unique=True)
    op.create_index('ix_policies_category_id', 'policies', ['category_id'])
    op.create_index('ix_policies_company_id', 'policies', ['company_id'])
    op.create_index('ix_policies_user_id', 'policies', ['user_id'])
    op.create_index('ix_policies_date_range', 'policies', ['policy_start_date', 'policy_end_date'])

    op.create_table(
        'scheduled_messages',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('scheduled_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False,
                  comment='pending | completed | failed'),
        sa.Column('inserted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_scheduled_messages_scheduled_date', 'scheduled_messages', ['scheduled_date'])
    op.create_index('ix_scheduled_messages_status', 'scheduled_messages', ['status'])

    op.create_table(
        'ingestion_runs',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('detected_format', sa.String(50), nullable=True),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('rows_total', sa.Integer(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('duration_ms', sa.Integer(), nullable=True),
        sa.Column('stats', sa.JSON(), nullable=True,
                  comment='Created counts per entity plus row errors'),
        sa.Column('error_message', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_ingestion_runs_status', 'ingestion_runs', ['status'])
    op.create_index('ix_ingestion_runs_started_at', 'ingestion_runs', ['started_at'])


def downgrade() -> None:
    op.drop_table('ingestion_runs')
    op.drop_table('scheduled_messages')
    op.drop_table('policies')
    op.drop_table('policy_carriers')
    op.drop_table('policy_categories')
    op.drop_table('user_accounts')
    op.drop_table('users')
    op.drop_table('agents')
