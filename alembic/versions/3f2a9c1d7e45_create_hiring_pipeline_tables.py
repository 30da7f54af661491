"""create_hiring_pipeline_tables

Creates the tenant directory (companies, teams, users, user_roles), the
tenant-scoped jobs and candidates, the candidate_jobs join table with its
(candidate_id, job_id) uniqueness constraint, and the activities log.

Revision ID: 3f2a9c1d7e45
Revises:
Create Date: 2026-10-19 09:12:44.318201

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e45'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATUS_VALUES = ('active', 'archived')
RELATIONSHIP_STATUS_VALUES = ('matched', 'in_progress', 'rejected', 'inactive')


def _ownership_columns():
    return [
        sa.Column('company_id', sa.String(36), sa.ForeignKey('companies.id'), nullable=False, index=True),
        sa.Column('team_id', sa.String(36), sa.ForeignKey('teams.id'), nullable=True),
        sa.Column('created_by', sa.String(36), nullable=True),
    ]


def _lifecycle_columns():
    return [
        sa.Column('status', sa.Enum(*STATUS_VALUES, name='recordstatus', native_enum=False, length=16),
                  nullable=False, server_default='active', index=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('archive_metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
    ]


def upgrade() -> None:
    """Create all hiring pipeline tables."""

    # 1. Tenant directory
    op.create_table(
        'companies',
        sa.Column('id', sa.String(36), primary_key=True, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'teams',
        sa.Column('id', sa.String(36), primary_key=True, index=True),
        sa.Column('company_id', sa.String(36), sa.ForeignKey('companies.id'), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True, index=True),
        sa.Column('email', sa.String(), nullable=False, unique=True, index=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        'user_roles',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('company_id', sa.String(36), sa.ForeignKey('companies.id'), nullable=True, index=True),
        sa.Column('team_id', sa.String(36), sa.ForeignKey('teams.id'), nullable=True),
        sa.Column('role', sa.String(), nullable=False, server_default='member'),
    )

    # 2. Tenant-scoped entities
    op.create_table(
        'jobs',
        sa.Column('id', sa.String(36), primary_key=True, index=True),
        *_ownership_columns(),
        sa.Column('title', sa.String(), nullable=False, index=True),
        sa.Column('company', sa.String(), nullable=True),
        sa.Column('department', sa.String(), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('employment_type', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('requirements', sa.JSON(), nullable=False),
        sa.Column('theme', sa.JSON(), nullable=True),
        *_lifecycle_columns(),
    )
    op.create_table(
        'candidates',
        sa.Column('id', sa.String(36), primary_key=True, index=True),
        *_ownership_columns(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('surname', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('position', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('source', sa.String(), nullable=False, server_default='Manual Web'),
        sa.Column('stage', sa.String(), nullable=False, server_default='new', index=True),
        *_lifecycle_columns(),
    )

    # 3. Candidate <-> job links, one per pair
    op.create_table(
        'candidate_jobs',
        sa.Column('id', sa.String(36), primary_key=True, index=True),
        sa.Column('candidate_id', sa.String(36), sa.ForeignKey('candidates.id'), nullable=False, index=True),
        sa.Column('job_id', sa.String(36), sa.ForeignKey('jobs.id'), nullable=False, index=True),
        *_ownership_columns(),
        sa.Column('status', sa.Enum(*RELATIONSHIP_STATUS_VALUES, name='candidatejobstatus', native_enum=False, length=16),
                  nullable=False, server_default='in_progress', index=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.UniqueConstraint('candidate_id', 'job_id', name='uq_candidate_jobs_candidate_job'),
    )

    # 4. Audit log
    op.create_table(
        'activities',
        sa.Column('id', sa.String(36), primary_key=True, index=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('company_id', sa.String(36), nullable=False, index=True),
        sa.Column('type', sa.String(64), nullable=False, index=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        'ix_activities_company_user_timestamp', 'activities', ['company_id', 'user_id', 'timestamp']
    )


def downgrade() -> None:
    """Drop all hiring pipeline tables."""
    op.drop_index('ix_activities_company_user_timestamp', table_name='activities')
    op.drop_table('activities')
    op.drop_table('candidate_jobs')
    op.drop_table('candidates')
    op.drop_table('jobs')
    op.drop_table('user_roles')
    op.drop_table('users')
    op.drop_table('teams')
    op.drop_table('companies')
