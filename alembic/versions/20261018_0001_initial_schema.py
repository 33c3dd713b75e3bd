"""Initial schema - cohorts, applications, submissions, certificates, review log

Revision ID: 0001
Revises: 
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Cohorts (administered elsewhere, referenced here)
    op.create_table(
        'cohorts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ends_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, default=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Applications
    op.create_table(
        'applications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('cohort_id', sa.Uuid(), sa.ForeignKey('cohorts.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('first_name', sa.String(120), nullable=False),
        sa.Column('last_name', sa.String(120), nullable=False),
        sa.Column('email', sa.String(255), nullable=False, index=True),
        sa.Column('slack_user_id', sa.String(64), nullable=True, index=True),
        sa.Column('track', sa.String(64), nullable=False),
        sa.Column('package', sa.String(32), nullable=False, default='Free'),
        sa.Column('payment_reference', sa.String(128), nullable=True),
        sa.Column('current_stage', sa.Integer(), nullable=False, default=1),
        sa.Column('progress', sa.Integer(), nullable=False, default=13),
        sa.Column('completed', sa.Boolean(), nullable=False, default=False),
        sa.Column('completed_tasks', sa.Integer(), nullable=False, default=0),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('email', 'cohort_id', name='uq_applications_email_cohort'),
    )

    # Submissions (append-only per attempt)
    op.create_table(
        'submissions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('application_id', sa.Uuid(), sa.ForeignKey('applications.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('cohort_id', sa.Uuid(), sa.ForeignKey('cohorts.id', ondelete='RESTRICT'), nullable=False, index=True),
        sa.Column('actor_id', sa.String(64), nullable=False, index=True),
        sa.Column('actor_display_name', sa.String(255), nullable=False),
        sa.Column('project_link', sa.String(2048), nullable=False),
        sa.Column('stage', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(32), nullable=False, default='Pending', index=True),
        sa.Column('feedback', sa.Text(), nullable=False, default=''),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('reviewed_by', sa.String(64), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_submissions_application_created', 'submissions', ['application_id', 'created_at'])
    op.create_index('ix_submissions_cohort_status', 'submissions', ['cohort_id', 'status'])

    # Certificates (one per application)
    op.create_table(
        'certificates',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('application_id', sa.Uuid(), sa.ForeignKey('applications.id', ondelete='RESTRICT'), nullable=False, unique=True),
        sa.Column('certificate_id', sa.String(64), nullable=False, unique=True, index=True),
        sa.Column('cohort_id', sa.Uuid(), sa.ForeignKey('cohorts.id', ondelete='SET NULL'), nullable=True),
        sa.Column('recipient_name', sa.String(255), nullable=False),
        sa.Column('track', sa.String(64), nullable=False),
        sa.Column('level', sa.String(32), nullable=False),
        sa.Column('artifact_path', sa.String(1024), nullable=True),
        sa.Column('issued_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Review log (append-only)
    op.create_table(
        'audit_log_entries',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('submission_id', sa.Uuid(), sa.ForeignKey('submissions.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('reviewer_id', sa.String(64), nullable=False),
        sa.Column('action', sa.String(32), nullable=False, default='Status Update'),
        sa.Column('old_status', sa.String(32), nullable=False),
        sa.Column('new_status', sa.String(32), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_audit_log_entries_submission_ts', 'audit_log_entries', ['submission_id', 'timestamp'])


def downgrade() -> None:
    op.drop_table('audit_log_entries')
    op.drop_table('certificates')
    op.drop_table('submissions')
    op.drop_table('applications')
    op.drop_table('cohorts')
