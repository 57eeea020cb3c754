"""compensation engine tables

Revision ID: 4f1d2c9a7e10
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1d2c9a7e10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'dispatchers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('contact_email', sa.String(length=255)),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('driver_parcel_rate', sa.Numeric(10, 4)),
        sa.Column('default_deduction_rate', sa.Numeric(12, 2)),
        sa.Column('admin_commission_percentage', sa.Numeric(10, 4), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_table(
        'drivers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=160), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('operator_id', sa.String(length=64), unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_table(
        'routes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('driver_id', sa.Integer(), sa.ForeignKey('drivers.id', ondelete='SET NULL')),
        sa.Column('dispatcher_id', sa.Integer(), sa.ForeignKey('dispatchers.id', ondelete='SET NULL')),
        sa.Column('scheduled_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20)),
        sa.Column('parcel_count_total', sa.Integer()),
        sa.Column('parcels_delivered', sa.Integer()),
        sa.Column('carrier_rate_per_parcel', sa.Numeric(10, 4)),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_index('ix_routes_driver_date', 'routes', ['driver_id', 'scheduled_date'])

    op.create_table(
        'driver_rates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('driver_id', sa.Integer(), sa.ForeignKey('drivers.id', ondelete='CASCADE')),
        sa.Column('operator_id', sa.String(length=64)),
        sa.Column('rate', sa.Numeric(10, 4), nullable=False),
        sa.Column('effective_date', sa.Date(), nullable=False),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
    )
    op.create_index('ix_driver_rates_operator_effective', 'driver_rates', ['operator_id', 'effective_date'])
    op.create_index('ix_driver_rates_driver_effective', 'driver_rates', ['driver_id', 'effective_date'])

    op.create_table(
        'deductions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('driver_id', sa.Integer(), sa.ForeignKey('drivers.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('deduction_type', sa.String(length=40)),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('created_by', sa.String(length=64)),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    expense_status = sa.Enum('pending', 'approved', 'rejected', name='expense_status_enum')
    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('driver_id', sa.Integer(), sa.ForeignKey('drivers.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('cost', sa.Numeric(12, 2), nullable=False),
        sa.Column('reason', sa.String(length=255)),
        sa.Column('status', expense_status, nullable=False, server_default='pending'),
        sa.Column('reviewed_by', sa.String(length=64)),
        sa.Column('reviewed_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_table(
        'earnings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('driver_id', sa.Integer(), sa.ForeignKey('drivers.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('week_start_date', sa.Date(), nullable=False),
        sa.Column('week_end_date', sa.Date(), nullable=False),
        sa.Column('gross_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('route_count', sa.Integer()),
        sa.Column('created_at', sa.DateTime()),
    )

    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('invoice_number', sa.String(length=64), nullable=False, unique=True),
        sa.Column('invoice_date', sa.Date(), nullable=False),
        sa.Column('period_start', sa.Date()),
        sa.Column('period_end', sa.Date()),
        sa.Column('net_total', sa.Numeric(14, 2)),
        sa.Column('gross_total', sa.Numeric(14, 2)),
        sa.Column('created_at', sa.DateTime()),
    )
    op.create_table(
        'invoice_weekly_pay',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('invoice_number', sa.String(length=64),
                  sa.ForeignKey('invoices.invoice_number', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('operator_id', sa.String(length=64), nullable=False),
        sa.Column('tour', sa.String(length=32), nullable=False, server_default=''),
        sa.Column('delivered_qty', sa.Integer()),
        sa.Column('amount_total', sa.Numeric(14, 2)),
        sa.UniqueConstraint('invoice_number', 'operator_id', 'tour', name='uq_weekly_pay_invoice_operator_tour'),
    )
    op.create_table(
        'daily_pay_qty',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('invoice_number', sa.String(length=64),
                  sa.ForeignKey('invoices.invoice_number', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('working_day', sa.Date(), nullable=False),
        sa.Column('operator_id', sa.String(length=64), nullable=False),
        sa.Column('tour', sa.String(length=32), nullable=False, server_default=''),
        sa.Column('total_qty', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('invoice_number', 'working_day', 'operator_id', 'tour',
                            name='uq_daily_pay_qty_invoice_day_operator_tour'),
    )
    op.create_index('ix_daily_pay_qty_invoice_operator', 'daily_pay_qty', ['invoice_number', 'operator_id'])

    op.create_table(
        'pay_statements',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('driver_id', sa.Integer(), sa.ForeignKey('drivers.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('period_start', sa.Date(), nullable=False),
        sa.Column('period_end', sa.Date(), nullable=False),
        sa.Column('gross_earnings', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('admin_cut', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_deductions', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('net_payout', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('paid_at', sa.DateTime()),
        sa.Column('payment_reference', sa.String(length=120)),
        sa.Column('created_at', sa.DateTime()),
        sa.Column('updated_at', sa.DateTime()),
        sa.UniqueConstraint('driver_id', 'period_start', 'period_end', name='uq_pay_statement_driver_period'),
    )
    op.create_table(
        'payslips',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('driver_id', sa.Integer(), sa.ForeignKey('drivers.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('invoice_number', sa.String(length=64), nullable=False, index=True),
        sa.Column('invoice_date', sa.Date()),
        sa.Column('period_start', sa.Date()),
        sa.Column('period_end', sa.Date()),
        sa.Column('operator_id', sa.String(length=64)),
        sa.Column('gross_pay', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('deductions', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('net_pay', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('generated_by', sa.String(length=64)),
        sa.Column('generated_at', sa.DateTime()),
        sa.UniqueConstraint('driver_id', 'invoice_number', name='uq_payslip_driver_invoice'),
    )


def downgrade() -> None:
    op.drop_table('payslips')
    op.drop_table('pay_statements')
    op.drop_index('ix_daily_pay_qty_invoice_operator', table_name='daily_pay_qty')
    op.drop_table('daily_pay_qty')
    op.drop_table('invoice_weekly_pay')
    op.drop_table('invoices')
    op.drop_table('earnings')
    op.drop_table('expenses')
    sa.Enum(name='expense_status_enum').drop(op.get_bind(), checkfirst=True)
    op.drop_table('deductions')
    op.drop_index('ix_driver_rates_driver_effective', table_name='driver_rates')
    op.drop_index('ix_driver_rates_operator_effective', table_name='driver_rates')
    op.drop_table('driver_rates')
    op.drop_index('ix_routes_driver_date', table_name='routes')
    op.drop_table('routes')
    op.drop_table('drivers')
    op.drop_table('dispatchers')
