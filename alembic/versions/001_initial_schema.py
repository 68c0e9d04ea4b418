"""Initial migration - create users, motors and orders tables

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, motors and orders tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('full_name', sa.String(length=100), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=30), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_users')),
    )
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'motors',
        sa.Column('motor_id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('motor_slug', sa.String(length=100), nullable=False),
        sa.Column('motor_name', sa.String(length=100), nullable=False),
        sa.Column('motor_type', sa.String(length=50), nullable=False),
        sa.Column('price_per_day', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('available', sa.Boolean(), nullable=True),
        sa.Column('branch', sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint('motor_id', name=op.f('pk_motors')),
    )
    op.create_index(op.f('ix_motors_motor_type'), 'motors', ['motor_type'], unique=False)

    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('tanggal_peminjaman', sa.Date(), nullable=False),
        sa.Column('jam_peminjaman', sa.Time(), nullable=False),
        sa.Column('alamat_pengantaran', sa.String(), nullable=False),
        sa.Column('tanggal_pengembalian', sa.Date(), nullable=False),
        sa.Column('jam_pengembalian', sa.Time(), nullable=False),
        sa.Column('alamat_pengembalian', sa.String(), nullable=False),
        sa.Column('pilih_cabang', sa.String(length=100), nullable=False),
        sa.Column('pilih_motor', sa.String(length=100), nullable=False),
        sa.Column('motor_price', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=30), nullable=False, server_default='pending'),
        sa.Column('tanggal_booking', sa.Date(), server_default=sa.text('CURRENT_DATE'), nullable=False),
        sa.Column('waktu_booking', sa.Time(), server_default=sa.text('CURRENT_TIME'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name=op.f('fk_orders_user_id_users'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_orders')),
    )
    op.create_index(op.f('ix_orders_user_id'), 'orders', ['user_id'], unique=False)


def downgrade() -> None:
    """Drop orders, motors and users tables."""
    op.drop_index(op.f('ix_orders_user_id'), table_name='orders')
    op.drop_table('orders')
    op.drop_index(op.f('ix_motors_motor_type'), table_name='motors')
    op.drop_table('motors')
    op.drop_index(op.f('ix_users_email'), table_name='users')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_table('users')
