"""Initial migration

Revision ID: 001
Revises:
Create Date: 2024-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('admin', 'manager', 'user', name='user_role')
menu_category = sa.Enum('starter', 'main', 'dessert', 'drink', name='menu_category')
reservation_status = sa.Enum('confirmed', 'cancelled', 'picked', name='reservation_status')


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('matricule', sa.String(64), unique=True, nullable=False),
        sa.Column('hashed_password', sa.String(255)),
        sa.Column('full_name', sa.String(255)),
        sa.Column('email', sa.String(255)),
        sa.Column('role', user_role, nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('last_login', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create menu_items table
    op.create_table(
        'menu_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('label', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('category', menu_category, nullable=False, server_default='main'),
        sa.Column('allergens', sa.JSON()),
        sa.Column('calories', sa.Integer()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('image_url', sa.String(500)),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create daily_menus table
    op.create_table(
        'daily_menus',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('day', sa.Date(), unique=True, nullable=False),
        sa.Column('locked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create daily_menu_items table
    op.create_table(
        'daily_menu_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('daily_menu_id', sa.Integer(), sa.ForeignKey('daily_menus.id'), nullable=False),
        sa.Column('menu_item_id', sa.Integer(), sa.ForeignKey('menu_items.id'), nullable=False),
        sa.Column('stock_quota', sa.Integer()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint('daily_menu_id', 'menu_item_id', name='uq_daily_menu_item'),
    )

    # Create reservations table
    op.create_table(
        'reservations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('menu_item_id', sa.Integer(), sa.ForeignKey('menu_items.id'), nullable=False),
        sa.Column('day', sa.Date(), nullable=False),
        sa.Column('category', menu_category, nullable=False),
        sa.Column('status', reservation_status, nullable=False, server_default='confirmed'),
        sa.Column('pickup_code', sa.String(16), unique=True, nullable=False),
        sa.Column('order_code', sa.String(64)),
        sa.Column('picked_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create settings table
    op.create_table(
        'settings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('key', sa.String(100), unique=True, nullable=False),
        sa.Column('value', sa.Text()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # Create indexes
    op.create_index('ix_reservations_order_code', 'reservations', ['order_code'])
    op.create_index('ix_reservations_day_status', 'reservations', ['day', 'status'])
    op.create_index(
        'uq_reservation_user_day_category_confirmed',
        'reservations',
        ['user_id', 'day', 'category'],
        unique=True,
        postgresql_where=sa.text("status = 'confirmed'"),
    )


def downgrade() -> None:
    op.drop_index('uq_reservation_user_day_category_confirmed')
    op.drop_index('ix_reservations_day_status')
    op.drop_index('ix_reservations_order_code')

    op.drop_table('settings')
    op.drop_table('reservations')
    op.drop_table('daily_menu_items')
    op.drop_table('daily_menus')
    op.drop_table('menu_items')
    op.drop_table('users')

    reservation_status.drop(op.get_bind(), checkfirst=True)
    menu_category.drop(op.get_bind(), checkfirst=True)
    user_role.drop(op.get_bind(), checkfirst=True)
