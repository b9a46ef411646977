"""create ticketing schema

Revision ID: 3c1e5a7b9d20
Revises:
Create Date: 2026-10-12 10:14:22.518302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3c1e5a7b9d20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_role = postgresql.ENUM('attendee', 'organizer', name='user_role', create_type=False)
order_status = postgresql.ENUM('pending', 'completed', 'cancelled', name='order_status', create_type=False)
ticket_status = postgresql.ENUM('valid', 'used', 'cancelled', name='ticket_status', create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    user_role.create(bind, checkfirst=True)
    order_status.create(bind, checkfirst=True)
    ticket_status.create(bind, checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), sa.Identity(always=False), primary_key=True),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text("timezone('utc', now())"),
                  nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('organizer_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('event_time', sa.Time(), nullable=True),
        sa.Column('location', sa.Text(), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('category', sa.Text(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), server_default='0', nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('available_tickets', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('price >= 0', name='chk_event_price_nonneg'),
        sa.CheckConstraint('capacity >= 0', name='chk_event_capacity_nonneg'),
        sa.CheckConstraint('available_tickets >= 0', name='chk_event_available_nonneg'),
        sa.CheckConstraint('available_tickets <= capacity', name='chk_event_available_le_capacity'),
    )
    op.create_index('ix_events_organizer_id', 'events', ['organizer_id'])
    op.create_index('ix_events_event_date', 'events', ['event_date'])
    op.create_index('ix_events_category', 'events', ['category'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('user_name', sa.Text(), nullable=False),
        sa.Column('user_email', sa.Text(), nullable=False),
        sa.Column('event_title', sa.Text(), nullable=False),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('event_time', sa.Time(), nullable=True),
        sa.Column('event_location', sa.Text(), nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', order_status, nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('quantity >= 1', name='chk_order_quantity_pos'),
        sa.CheckConstraint('total_amount >= 0', name='chk_order_total_nonneg'),
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_event_id', 'orders', ['event_id'])

    op.create_table(
        'tickets',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('event_title', sa.Text(), nullable=False),
        sa.Column('event_date', sa.Date(), nullable=False),
        sa.Column('event_time', sa.Time(), nullable=True),
        sa.Column('event_location', sa.Text(), nullable=False),
        sa.Column('holder_name', sa.Text(), nullable=False),
        sa.Column('holder_email', sa.Text(), nullable=False),
        sa.Column('code', sa.Text(), nullable=False),
        sa.Column('status', ticket_status, nullable=False),
        sa.Column('purchase_date', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('check_in_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.UniqueConstraint('code', name='uq_tickets_code'),
        sa.CheckConstraint("(status = 'used') = (check_in_date IS NOT NULL)",
                           name='chk_ticket_check_in_matches_status'),
    )
    op.create_index('ix_tickets_order_id', 'tickets', ['order_id'])
    op.create_index('ix_tickets_event_id', 'tickets', ['event_id'])
    op.create_index('ix_tickets_user_id', 'tickets', ['user_id'])
    op.create_index('ix_tickets_status', 'tickets', ['status'])


def downgrade() -> None:
    op.drop_table('tickets')
    op.drop_table('orders')
    op.drop_table('events')
    op.drop_table('users')

    bind = op.get_bind()
    ticket_status.drop(bind, checkfirst=True)
    order_status.drop(bind, checkfirst=True)
    user_role.drop(bind, checkfirst=True)
