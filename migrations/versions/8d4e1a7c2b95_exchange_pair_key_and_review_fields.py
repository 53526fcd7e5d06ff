"""exchange_pair_key_and_review_fields

Revision ID: 8d4e1a7c2b95
Revises: 3b1f0c6a9d21
Create Date: 2026-10-19 15:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d4e1a7c2b95'
down_revision: Union[str, None] = '3b1f0c6a9d21'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OPEN_REQUEST = "target_response IN ('pending', 'accepted') AND admin_response = 'pending'"


def upgrade():
    with op.batch_alter_table('applications') as batch_op:
        batch_op.add_column(sa.Column('reject_reason', sa.Text(), nullable=True))
        batch_op.add_column(sa.Column('notification_kind', sa.String(32), nullable=True))

    with op.batch_alter_table('priority_exchange_requests') as batch_op:
        batch_op.add_column(sa.Column('pair_low_application_id', sa.Integer(), nullable=True))
        batch_op.add_column(sa.Column('pair_high_application_id', sa.Integer(), nullable=True))

    op.execute(
        "UPDATE priority_exchange_requests SET "
        "pair_low_application_id = CASE WHEN requester_application_id < target_application_id "
        "THEN requester_application_id ELSE target_application_id END, "
        "pair_high_application_id = CASE WHEN requester_application_id < target_application_id "
        "THEN target_application_id ELSE requester_application_id END"
    )

    with op.batch_alter_table('priority_exchange_requests') as batch_op:
        batch_op.alter_column('pair_low_application_id', existing_type=sa.Integer(), nullable=False)
        batch_op.alter_column('pair_high_application_id', existing_type=sa.Integer(), nullable=False)

    op.create_index(
        'uq_priority_exchange_requests_open_pair',
        'priority_exchange_requests',
        ['pair_low_application_id', 'pair_high_application_id'],
        unique=True,
        sqlite_where=sa.text(OPEN_REQUEST),
        postgresql_where=sa.text(OPEN_REQUEST),
    )


def downgrade():
    op.drop_index('uq_priority_exchange_requests_open_pair', table_name='priority_exchange_requests')

    with op.batch_alter_table('priority_exchange_requests') as batch_op:
        batch_op.drop_column('pair_high_application_id')
        batch_op.drop_column('pair_low_application_id')

    with op.batch_alter_table('applications') as batch_op:
        batch_op.drop_column('notification_kind')
        batch_op.drop_column('reject_reason')
