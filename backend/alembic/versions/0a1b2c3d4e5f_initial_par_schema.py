"""initial_par_schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-19 09:00:00.000000

Requests, the approver roster with delegates, materialized approval steps,
the job id counter row and the audit trail.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0a1b2c3d4e5f'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'par_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('job_id', sa.String(32), nullable=False),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('position', sa.String(255), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('fund_line', sa.String(255), nullable=True),
        sa.Column('request_type', sa.String(32), nullable=False),
        sa.Column('employment_type', sa.String(32), nullable=False),
        sa.Column('position_duration', sa.String(32), nullable=False),
        sa.Column('new_employee_name', sa.String(255), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('replaced_person', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('submitted_by', sa.String(255), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_par_requests_job_id', 'par_requests', ['job_id'], unique=True)
    op.create_index('ix_par_requests_status', 'par_requests', ['status'])

    op.create_table(
        'approvers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_approvers_sort_order', 'approvers', ['sort_order'])

    op.create_table(
        'approver_delegates',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('approver_id', sa.Uuid(), nullable=False),
        sa.Column('delegate_name', sa.String(255), nullable=False),
        sa.Column('delegate_email', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['approver_id'], ['approvers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('approver_id', 'delegate_name', name='uq_approver_delegates_name'),
    )
    op.create_index('ix_approver_delegates_approver_id', 'approver_delegates', ['approver_id'])

    op.create_table(
        'approval_steps',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('request_id', sa.Uuid(), nullable=False),
        sa.Column('approver_id', sa.Uuid(), nullable=False),
        sa.Column('step_order', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('approved_by', sa.String(255), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('kick_back_reason', sa.Text(), nullable=True),
        sa.Column('kick_back_to_step', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['request_id'], ['par_requests.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approver_id'], ['approvers.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('request_id', 'step_order', name='uq_approval_steps_request_step'),
    )
    op.create_index('ix_approval_steps_request_id', 'approval_steps', ['request_id'])
    op.create_index('ix_approval_steps_approver_id', 'approval_steps', ['approver_id'])

    counters = op.create_table(
        'job_id_counters',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('current_year', sa.Integer(), nullable=False),
        sa.Column('current_sequence', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    # Single counter row; allocation only ever locks and updates it
    op.bulk_insert(counters, [{'id': 1, 'current_year': 2026, 'current_sequence': 0}])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.String(64), nullable=False),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('changed_by', sa.String(255), nullable=True),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])

    # Append-only at the DB level
    op.execute("REVOKE UPDATE, DELETE ON audit_logs FROM PUBLIC;")
    op.execute("GRANT SELECT, INSERT ON audit_logs TO PUBLIC;")


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('job_id_counters')
    op.drop_table('approval_steps')
    op.drop_table('approver_delegates')
    op.drop_table('approvers')
    op.drop_table('par_requests')
