"""Baseline schema: staff users, patients, availability and appointments

Revision ID: 0001_baseline
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('last_login_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_id', 'users', ['id'])

    op.create_table(
        'patients',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('first_name', sa.String(length=255), nullable=False),
        sa.Column('last_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_patients_id', 'patients', ['id'])
    op.create_index('idx_patients_email', 'patients', ['email'])
    op.create_index('idx_patients_name', 'patients', ['last_name', 'first_name'])
    op.create_index('idx_patients_status', 'patients', ['status'])

    op.create_table(
        'recurring_availability',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_recurring_availability_id', 'recurring_availability', ['id'])
    op.create_index(
        'idx_recurring_availability_owner_day', 'recurring_availability', ['owner_id', 'day_of_week']
    )

    op.create_table(
        'specific_date_availability',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('specific_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'owner_id', 'specific_date', 'start_time', 'end_time',
            name='uq_specific_date_availability_slot',
        ),
    )
    op.create_index('ix_specific_date_availability_id', 'specific_date_availability', ['id'])
    op.create_index(
        'idx_specific_date_availability_owner_date',
        'specific_date_availability',
        ['owner_id', 'specific_date'],
    )

    op.create_table(
        'blocked_dates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('blocked_date', sa.Date(), nullable=False),
        sa.Column('activity', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('owner_id', 'blocked_date', name='uq_blocked_dates_owner_date'),
    )
    op.create_index('ix_blocked_dates_id', 'blocked_dates', ['id'])

    op.create_table(
        'appointments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('patient_id', sa.Integer(), nullable=False),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('appointment_time', sa.Time(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('services', sa.JSON(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('cancelled_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id']),
        sa.ForeignKeyConstraint(['patient_id'], ['patients.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_appointments_id', 'appointments', ['id'])
    op.create_index('idx_appointments_owner_date', 'appointments', ['owner_id', 'appointment_date'])
    op.create_index('idx_appointments_patient', 'appointments', ['patient_id'])
    op.create_index('idx_appointments_status', 'appointments', ['status'])
    # One live appointment per slot; cancelled rows don't count
    op.create_index(
        'uq_appointments_active_slot',
        'appointments',
        ['owner_id', 'appointment_date', 'appointment_time'],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'"),
        sqlite_where=sa.text("status <> 'cancelled'"),
    )


def downgrade() -> None:
    op.drop_index('uq_appointments_active_slot', table_name='appointments')
    op.drop_index('idx_appointments_status', table_name='appointments')
    op.drop_index('idx_appointments_patient', table_name='appointments')
    op.drop_index('idx_appointments_owner_date', table_name='appointments')
    op.drop_index('ix_appointments_id', table_name='appointments')
    op.drop_table('appointments')

    op.drop_index('ix_blocked_dates_id', table_name='blocked_dates')
    op.drop_table('blocked_dates')

    op.drop_index('idx_specific_date_availability_owner_date', table_name='specific_date_availability')
    op.drop_index('ix_specific_date_availability_id', table_name='specific_date_availability')
    op.drop_table('specific_date_availability')

    op.drop_index('idx_recurring_availability_owner_day', table_name='recurring_availability')
    op.drop_index('ix_recurring_availability_id', table_name='recurring_availability')
    op.drop_table('recurring_availability')

    op.drop_index('idx_patients_status', table_name='patients')
    op.drop_index('idx_patients_name', table_name='patients')
    op.drop_index('idx_patients_email', table_name='patients')
    op.drop_index('ix_patients_id', table_name='patients')
    op.drop_table('patients')

    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
