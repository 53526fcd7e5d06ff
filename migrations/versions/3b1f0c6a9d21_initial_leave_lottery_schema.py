"""initial_leave_lottery_schema

Revision ID: 3b1f0c6a9d21
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1f0c6a9d21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

INACTIVE = "('cancelled', 'cancelled_before_lottery', 'cancelled_after_lottery', 'withdrawn')"


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade():
    op.create_table(
        'staff',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('staff_id', sa.String(20), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('display_order', sa.Integer(), server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_staff_id', 'staff', ['id'])
    op.create_index('ix_staff_staff_id', 'staff', ['staff_id'], unique=True)

    op.create_table(
        'settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('lottery_period_months', sa.Integer(), nullable=False),
        sa.Column('lottery_period_start_day', sa.Integer(), nullable=False),
        sa.Column('lottery_period_end_day', sa.Integer(), nullable=False),
        sa.Column('max_annual_leave_points', sa.Numeric(8, 2), nullable=False),
        sa.Column('level1_points', sa.Numeric(6, 2), nullable=False),
        sa.Column('level2_points', sa.Numeric(6, 2), nullable=False),
        sa.Column('level3_points', sa.Numeric(6, 2), nullable=False),
        sa.Column('current_fiscal_year', sa.Integer(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'calendar_management',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('vacation_date', sa.Date(), nullable=False),
        sa.Column('max_people', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(32), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_calendar_management_vacation_date', 'calendar_management', ['vacation_date'], unique=True)

    op.create_table(
        'holidays',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('holiday_date', sa.Date(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_holidays_holiday_date', 'holidays', ['holiday_date'], unique=True)

    op.create_table(
        'applications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('staff_id', sa.String(20), sa.ForeignKey('staff.staff_id'), nullable=False),
        sa.Column('vacation_date', sa.Date(), nullable=False),
        sa.Column('period', sa.String(32), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('priority', sa.Integer(), nullable=True),
        sa.Column('is_within_lottery_period', sa.Boolean(), nullable=False),
        sa.Column('applied_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('remarks', sa.Text()),
        sa.Column('user_notified', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_applications_staff_id', 'applications', ['staff_id'])
    op.create_index('ix_applications_vacation_date', 'applications', ['vacation_date'])
    op.create_index('ix_applications_status', 'applications', ['status'])
    op.create_index(
        'uq_applications_live_staff_date',
        'applications',
        ['staff_id', 'vacation_date'],
        unique=True,
        sqlite_where=sa.text(f"status NOT IN {INACTIVE}"),
        postgresql_where=sa.text(f"status NOT IN {INACTIVE}"),
    )

    op.create_table(
        'cancellation_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('application_id', sa.Integer(), sa.ForeignKey('applications.id'), nullable=False),
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('previous_status', sa.String(32), nullable=False),
        sa.Column('requested_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('requested_reason', sa.Text()),
        sa.Column('reviewed_by_staff_id', sa.String(20), sa.ForeignKey('staff.staff_id'), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True)),
        sa.Column('review_comment', sa.Text()),
        sa.Column('user_notified', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_cancellation_requests_application_id', 'cancellation_requests', ['application_id'])
    op.create_index(
        'uq_cancellation_requests_pending_application',
        'cancellation_requests',
        ['application_id'],
        unique=True,
        sqlite_where=sa.text("status = 'pending'"),
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        'priority_exchange_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('requester_application_id', sa.Integer(), sa.ForeignKey('applications.id'), nullable=False),
        sa.Column('requester_staff_id', sa.String(20), sa.ForeignKey('staff.staff_id'), nullable=False),
        sa.Column('target_application_id', sa.Integer(), sa.ForeignKey('applications.id'), nullable=False),
        sa.Column('target_staff_id', sa.String(20), sa.ForeignKey('staff.staff_id'), nullable=False),
        sa.Column('request_reason', sa.Text()),
        sa.Column('requested_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('target_response', sa.String(32), nullable=False),
        sa.Column('target_responded_at', sa.DateTime(timezone=True)),
        sa.Column('target_reject_reason', sa.Text()),
        sa.Column('admin_response', sa.String(32), nullable=False),
        sa.Column('admin_staff_id', sa.String(20), sa.ForeignKey('staff.staff_id'), nullable=True),
        sa.Column('admin_responded_at', sa.DateTime(timezone=True)),
        sa.Column('admin_reject_reason', sa.Text()),
        sa.Column('executed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('executed_at', sa.DateTime(timezone=True)),
        sa.Column('requester_notified', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('target_notified', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint('requester_staff_id <> target_staff_id', name='ck_exchange_distinct_staff'),
    )
    for column in ('requester_application_id', 'requester_staff_id', 'target_application_id', 'target_staff_id'):
        op.create_index(f'ix_priority_exchange_requests_{column}', 'priority_exchange_requests', [column])

    op.create_table(
        'priority_exchange_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('exchange_request_id', sa.Integer(), sa.ForeignKey('priority_exchange_requests.id'), nullable=True),
        sa.Column('application_id_1', sa.Integer(), sa.ForeignKey('applications.id'), nullable=False),
        sa.Column('application_id_2', sa.Integer(), sa.ForeignKey('applications.id'), nullable=False),
        sa.Column('before_priority_1', sa.Integer(), nullable=False),
        sa.Column('before_priority_2', sa.Integer(), nullable=False),
        sa.Column('before_level_1', sa.Integer(), nullable=False),
        sa.Column('before_level_2', sa.Integer(), nullable=False),
        sa.Column('after_priority_1', sa.Integer(), nullable=False),
        sa.Column('after_priority_2', sa.Integer(), nullable=False),
        sa.Column('after_level_1', sa.Integer(), nullable=False),
        sa.Column('after_level_2', sa.Integer(), nullable=False),
        sa.Column('exchanged_by_staff_id', sa.String(20), sa.ForeignKey('staff.staff_id'), nullable=False),
        sa.Column('exchanged_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_priority_exchange_logs_exchange_request_id', 'priority_exchange_logs', ['exchange_request_id'])


def downgrade():
    op.drop_table('priority_exchange_logs')
    op.drop_table('priority_exchange_requests')
    op.drop_table('cancellation_requests')
    op.drop_table('applications')
    op.drop_table('holidays')
    op.drop_table('calendar_management')
    op.drop_table('settings')
    op.drop_table('staff')
