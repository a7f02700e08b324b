"""Initial booking schema

Revision ID: 3f7b2d91c4a0
Revises:
Create Date: 2026-10-19

Creates the tables for services, sites and fields, staff and vehicles,
clients and pets, service availability rules, and bookings with their
client and pet links.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f7b2d91c4a0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns() -> list:
    return [
        sa.Column('id', sa.CHAR(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table('services',
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('service_type', sa.String(length=50), nullable=False),
        sa.Column('default_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('requires_field_selection', sa.Boolean(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('services', schema=None) as batch_op:
        batch_op.create_index('idx_service_active', ['active'], unique=False)
        batch_op.create_index('idx_service_deleted', ['deleted_at'], unique=False)

    op.create_table('sites',
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('fields',
        sa.Column('site_id', sa.CHAR(length=32), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=True),
        sa.Column('field_type', sa.String(length=50), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['site_id'], ['sites.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('fields', schema=None) as batch_op:
        batch_op.create_index('idx_field_site', ['site_id'], unique=False)

    op.create_table('vehicles',
        sa.Column('make', sa.String(length=50), nullable=False),
        sa.Column('model', sa.String(length=50), nullable=False),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('color', sa.String(length=30), nullable=True),
        sa.Column('license_plate', sa.String(length=20), nullable=True),
        sa.Column('pet_capacity', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('staff',
        sa.Column('user_id', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('default_vehicle_id', sa.CHAR(length=32), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['default_vehicle_id'], ['vehicles.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('staff', schema=None) as batch_op:
        batch_op.create_index('idx_staff_user', ['user_id'], unique=False)

    op.create_table('staff_availability',
        sa.Column('staff_id', sa.CHAR(length=32), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('specific_date', sa.Date(), nullable=True),
        sa.Column('days_of_week', sa.JSON(), nullable=True),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['staff_id'], ['staff.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('staff_availability', schema=None) as batch_op:
        batch_op.create_index('idx_staff_availability_staff', ['staff_id', 'is_available'], unique=False)

    op.create_table('clients',
        sa.Column('user_id', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('default_staff_id', sa.CHAR(length=32), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['default_staff_id'], ['staff.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('clients', schema=None) as batch_op:
        batch_op.create_index('idx_client_user', ['user_id'], unique=False)

    op.create_table('pets',
        sa.Column('client_id', sa.CHAR(length=32), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=True),
        sa.Column('breed', sa.String(length=100), nullable=True),
        sa.Column('size', sa.String(length=20), nullable=True),
        sa.Column('is_confirmed', sa.Boolean(), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('pets', schema=None) as batch_op:
        batch_op.create_index('idx_pet_client', ['client_id'], unique=False)

    op.create_table('service_availability',
        sa.Column('service_id', sa.CHAR(length=32), nullable=False),
        sa.Column('field_ids', sa.JSON(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('specific_date', sa.Date(), nullable=True),
        sa.Column('days_of_week', sa.JSON(), nullable=True),
        sa.Column('use_staff_vehicle_capacity', sa.Boolean(), nullable=False),
        sa.Column('max_pets_per_booking', sa.Integer(), nullable=True),
        sa.Column('override_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['service_id'], ['services.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('service_availability', schema=None) as batch_op:
        batch_op.create_index('idx_service_availability_service', ['service_id', 'is_active'], unique=False)
        batch_op.create_index('idx_service_availability_date', ['specific_date'], unique=False)

    op.create_table('bookings',
        sa.Column('service_id', sa.CHAR(length=32), nullable=False),
        sa.Column('service_type', sa.String(length=100), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('is_paid', sa.Boolean(), nullable=False),
        sa.Column('booking_field_ids', sa.JSON(), nullable=True),
        sa.Column('assigned_staff_id', sa.CHAR(length=32), nullable=True),
        sa.Column('vehicle_id', sa.CHAR(length=32), nullable=True),
        sa.Column('assignment_notes', sa.Text(), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint('end_time > start_time', name='check_booking_time_order'),
        sa.CheckConstraint(
            "status IN ('confirmed', 'cancelled', 'completed')",
            name='check_booking_status',
        ),
        sa.ForeignKeyConstraint(['service_id'], ['services.id']),
        sa.ForeignKeyConstraint(['assigned_staff_id'], ['staff.id']),
        sa.ForeignKeyConstraint(['vehicle_id'], ['vehicles.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('bookings', schema=None) as batch_op:
        batch_op.create_index('idx_booking_staff_time', ['assigned_staff_id', 'start_time', 'end_time'], unique=False)
        batch_op.create_index('idx_booking_service', ['service_id'], unique=False)
        batch_op.create_index('idx_booking_status', ['status'], unique=False)

    op.create_table('booking_clients',
        sa.Column('booking_id', sa.CHAR(length=32), nullable=False),
        sa.Column('client_id', sa.CHAR(length=32), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['client_id'], ['clients.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('booking_clients', schema=None) as batch_op:
        batch_op.create_index('idx_booking_client_booking', ['booking_id'], unique=False)
        batch_op.create_index('idx_booking_client_client', ['client_id'], unique=False)

    op.create_table('booking_pets',
        sa.Column('booking_id', sa.CHAR(length=32), nullable=False),
        sa.Column('pet_id', sa.CHAR(length=32), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['pet_id'], ['pets.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('booking_pets', schema=None) as batch_op:
        batch_op.create_index('idx_booking_pet_booking', ['booking_id'], unique=False)


def downgrade() -> None:
    op.drop_table('booking_pets')
    op.drop_table('booking_clients')
    op.drop_table('bookings')
    op.drop_table('service_availability')
    op.drop_table('pets')
    op.drop_table('clients')
    op.drop_table('staff_availability')
    op.drop_table('staff')
    op.drop_table('vehicles')
    op.drop_table('fields')
    op.drop_table('sites')
    op.drop_table('services')
