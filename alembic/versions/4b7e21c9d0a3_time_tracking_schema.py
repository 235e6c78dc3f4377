"""time tracking schema

Revision ID: 4b7e21c9d0a3
Revises:
Create Date: 2026-10-19 09:12:41.208113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4b7e21c9d0a3'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TASK_STATUS = postgresql.ENUM('Pending', 'In Progress', 'Completed', 'On Hold', 'Cancelled', name="task_status", create_type=False)
TASK_PRIORITY = postgresql.ENUM('Low', 'Medium', 'High', 'Urgent', name="task_priority", create_type=False)


def upgrade() -> None:
    # Written for PostgreSQL; SQLite development databases are created by the app on startup.
    TASK_STATUS.create(op.get_bind(), checkfirst=True)
    TASK_PRIORITY.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', TASK_STATUS, nullable=False),
        sa.Column('priority', TASK_PRIORITY, nullable=False),
        sa.Column('deadline', sa.DateTime(), nullable=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_tasks_id', 'tasks', ['id'])
    op.create_index('ix_tasks_user_id', 'tasks', ['user_id'])
    op.create_index('ix_tasks_created_at', 'tasks', ['created_at'])

    # History tables are insert-only.
    op.create_table(
        'task_status_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('task_id', sa.Integer(), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', TASK_STATUS, nullable=False),
        sa.Column('changed_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_task_status_history_id', 'task_status_history', ['id'])
    op.create_index('ix_task_status_history_task_id', 'task_status_history', ['task_id'])

    op.create_table(
        'task_priority_history',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('task_id', sa.Integer(), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('priority', TASK_PRIORITY, nullable=False),
        sa.Column('changed_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_task_priority_history_id', 'task_priority_history', ['id'])
    op.create_index('ix_task_priority_history_task_id', 'task_priority_history', ['task_id'])

    op.create_table(
        'task_remarks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('task_id', sa.Integer(), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_task_remarks_id', 'task_remarks', ['id'])
    op.create_index('ix_task_remarks_task_id', 'task_remarks', ['task_id'])

    op.create_table(
        'time_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('task_id', sa.Integer(), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('duration', sa.BigInteger(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_time_logs_id', 'time_logs', ['id'])
    op.create_index('ix_time_logs_task_id', 'time_logs', ['task_id'])
    op.create_index('ix_time_logs_user_id', 'time_logs', ['user_id'])
    op.create_index('ix_time_logs_date', 'time_logs', ['date'])
    # One open log per (task, owner); enforced by the database, not only the API.
    op.create_index(
        'uq_time_logs_active_task_user',
        'time_logs',
        ['task_id', 'user_id'],
        unique=True,
        postgresql_where=sa.text('is_active'),
        sqlite_where=sa.text('is_active = 1'),
    )

    op.create_table(
        'daily_summaries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('total_time_spent', sa.BigInteger(), nullable=False),
        sa.Column('completed_tasks', sa.Integer(), nullable=False),
        sa.Column('in_progress_tasks', sa.Integer(), nullable=False),
        sa.Column('pending_tasks', sa.Integer(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=False),
        sa.Column('daily_score', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'date', name='uq_daily_summaries_user_date'),
    )
    op.create_index('ix_daily_summaries_id', 'daily_summaries', ['id'])
    op.create_index('ix_daily_summaries_user_id', 'daily_summaries', ['user_id'])

    op.create_table(
        'daily_summary_tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('summary_id', sa.Integer(), sa.ForeignKey('daily_summaries.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('task_id', sa.Integer(), sa.ForeignKey('tasks.id', ondelete='SET NULL'), nullable=True),
        sa.Column('task_title', sa.String(), nullable=True),
        sa.Column('time_spent', sa.BigInteger(), nullable=False),
        sa.Column('status', TASK_STATUS, nullable=True),
    )
    op.create_index('ix_daily_summary_tasks_id', 'daily_summary_tasks', ['id'])
    op.create_index('ix_daily_summary_tasks_summary_id', 'daily_summary_tasks', ['summary_id'])


def downgrade() -> None:
    op.drop_table('daily_summary_tasks')
    op.drop_table('daily_summaries')
    op.drop_index('uq_time_logs_active_task_user', table_name='time_logs')
    op.drop_table('time_logs')
    op.drop_table('task_remarks')
    op.drop_table('task_priority_history')
    op.drop_table('task_status_history')
    op.drop_table('tasks')
    op.drop_table('users')
    TASK_PRIORITY.drop(op.get_bind(), checkfirst=True)
    TASK_STATUS.drop(op.get_bind(), checkfirst=True)
