"""add booking seats to enforce slot capacity

Revision ID: 7c8d9e0f1a2b
Revises: 4f1a2b3c5d6e
Create Date: 2026-10-05 09:30:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "7c8d9e0f1a2b"
down_revision = "4f1a2b3c5d6e"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("bookings", schema=None) as batch_op:
        batch_op.add_column(sa.Column("seat", sa.Integer(), nullable=True))
        batch_op.create_unique_constraint(
            "uq_booking_cell_seat", ["calendar_id", "slot_date", "slot_time", "seat"]
        )


def downgrade():
    with op.batch_alter_table("bookings", schema=None) as batch_op:
        batch_op.drop_constraint("uq_booking_cell_seat", type_="unique")
        batch_op.drop_column("seat")
