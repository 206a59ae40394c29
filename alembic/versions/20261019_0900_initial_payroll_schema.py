"""Initial schema: branches, users, ledger, payroll and audit

Revision ID: 20261019_0900
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration creates the back-office schema:
- branches: restaurant branches
- users: admins and branch-scoped accountants
- employees: staff per branch with base salary and allowance
- transactions: immutable income/expense ledger
- salary_payments: one settled salary per employee per month
  (UNIQUE employee_id + salary_month)
- employee_adjustments: bonuses, deductions and cash advances
- audit_logs: append-only audit trail
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, UUID


# revision identifiers, used by Alembic.
revision = '20261019_0900'
down_revision = None
branch_labels = None
depends_on = None


user_role = sa.Enum('ADMIN', 'ACCOUNTANT', name='userrole')
employment_status = sa.Enum('ACTIVE', 'INACTIVE', name='employmentstatus')
transaction_type = sa.Enum('INCOME', 'EXPENSE', name='transactiontype')
transaction_category = sa.Enum(
    'SALES', 'SERVICES', 'APP_PURCHASES', 'OTHER_INCOME',
    'EMPLOYEE_SALARIES', 'WORKER_DAILY', 'RENT', 'UTILITIES', 'SUPPLIES',
    'MAINTENANCE', 'TRANSPORTATION', 'INVENTORY', 'OTHER_EXPENSE',
    name='transactioncategory',
)
payment_method = sa.Enum('CASH', 'MASTER', name='paymentmethod')
# Already created with the transactions table
payment_method_existing = ENUM('CASH', 'MASTER', name='paymentmethod', create_type=False)
adjustment_type = sa.Enum('BONUS', 'DEDUCTION', 'ADVANCE', name='adjustmenttype')
adjustment_status = sa.Enum('PENDING', 'PROCESSED', name='adjustmentstatus')
audit_action = sa.Enum('CREATE', 'UPDATE', name='auditaction')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    # ===========================================
    # BRANCHES
    # ===========================================
    op.create_table('branches',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_branches'),
        sa.UniqueConstraint('name', name='uq_branches_name'),
    )

    # ===========================================
    # USERS
    # ===========================================
    op.create_table('users',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('username', sa.String(150), nullable=False),
        sa.Column('full_name', sa.String(200), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('branch_id', UUID(as_uuid=True), nullable=True,
                  comment='Required for accountants; admins are not tied to a branch'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('username', name='uq_users_username'),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id'], name='fk_users_branch_id_branches', ondelete='SET NULL'),
    )
    op.create_index('ix_users_branch_id', 'users', ['branch_id'])

    # ===========================================
    # EMPLOYEES
    # ===========================================
    op.create_table('employees',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('branch_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('position', sa.String(100), nullable=False),
        sa.Column('base_salary', sa.Numeric(15, 2), nullable=False, comment='Monthly base salary'),
        sa.Column('allowance', sa.Numeric(15, 2), nullable=False, comment='Fixed monthly allowance'),
        sa.Column('status', employment_status, nullable=False),
        sa.Column('hire_date', sa.Date(), nullable=False),
        sa.Column('created_by_id', UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_employees'),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id'], name='fk_employees_branch_id_branches', ondelete='RESTRICT'),
        sa.CheckConstraint('base_salary >= 0', name='ck_employees_base_salary_non_negative'),
        sa.CheckConstraint('allowance >= 0', name='ck_employees_allowance_non_negative'),
    )
    op.create_index('ix_employees_branch_id', 'employees', ['branch_id'])
    op.create_index('ix_employees_status', 'employees', ['status'])
    op.create_index('ix_employees_created_by_id', 'employees', ['created_by_id'])

    # ===========================================
    # TRANSACTIONS (LEDGER)
    # ===========================================
    op.create_table('transactions',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('branch_id', UUID(as_uuid=True), nullable=False),
        sa.Column('transaction_type', transaction_type, nullable=False),
        sa.Column('category', transaction_category, nullable=False),
        sa.Column('transaction_date', sa.Date(), nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('payment_method', payment_method, nullable=False),
        sa.Column('employee_id', UUID(as_uuid=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('reference', sa.String(100), nullable=True),
        sa.Column('created_by_id', UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_transactions'),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id'], name='fk_transactions_branch_id_branches', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name='fk_transactions_employee_id_employees', ondelete='RESTRICT'),
    )
    op.create_index('ix_transactions_branch_id', 'transactions', ['branch_id'])
    op.create_index('ix_transactions_transaction_type', 'transactions', ['transaction_type'])
    op.create_index('ix_transactions_category', 'transactions', ['category'])
    op.create_index('ix_transactions_transaction_date', 'transactions', ['transaction_date'])
    op.create_index('ix_transactions_employee_id', 'transactions', ['employee_id'])
    op.create_index('ix_transactions_created_by_id', 'transactions', ['created_by_id'])

    # ===========================================
    # SALARY PAYMENTS
    # ===========================================
    op.create_table('salary_payments',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('employee_id', UUID(as_uuid=True), nullable=False),
        sa.Column('salary_month', sa.String(7), nullable=False, comment='Settled month as YYYY-MM'),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('payment_method', payment_method_existing, nullable=False),
        sa.Column('gross_salary', sa.Numeric(15, 2), nullable=False),
        sa.Column('total_bonuses', sa.Numeric(15, 2), nullable=False),
        sa.Column('total_deductions', sa.Numeric(15, 2), nullable=False),
        sa.Column('total_advances', sa.Numeric(15, 2), nullable=False),
        sa.Column('net_salary', sa.Numeric(15, 2), nullable=False),
        sa.Column('transaction_id', UUID(as_uuid=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_id', UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_salary_payments'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name='fk_salary_payments_employee_id_employees', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id'], name='fk_salary_payments_transaction_id_transactions', ondelete='RESTRICT'),
        sa.UniqueConstraint('employee_id', 'salary_month', name='uq_salary_payments_employee_month'),
        sa.UniqueConstraint('transaction_id', name='uq_salary_payments_transaction_id'),
        sa.CheckConstraint('net_salary > 0', name='ck_salary_payments_net_salary_positive'),
    )
    op.create_index('ix_salary_payments_employee_id', 'salary_payments', ['employee_id'])
    op.create_index('ix_salary_payments_payment_date', 'salary_payments', ['payment_date'])
    op.create_index('ix_salary_payments_created_by_id', 'salary_payments', ['created_by_id'])

    # ===========================================
    # EMPLOYEE ADJUSTMENTS
    # ===========================================
    op.create_table('employee_adjustments',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('employee_id', UUID(as_uuid=True), nullable=False),
        sa.Column('adjustment_type', adjustment_type, nullable=False),
        sa.Column('amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('adjustment_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', adjustment_status, nullable=False),
        sa.Column('transaction_id', UUID(as_uuid=True), nullable=True),
        sa.Column('salary_payment_id', UUID(as_uuid=True), nullable=True),
        sa.Column('created_by_id', UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_employee_adjustments'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name='fk_employee_adjustments_employee_id_employees', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id'], name='fk_employee_adjustments_transaction_id_transactions', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['salary_payment_id'], ['salary_payments.id'], name='fk_employee_adjustments_salary_payment_id_salary_payments', ondelete='RESTRICT'),
        sa.UniqueConstraint('transaction_id', name='uq_employee_adjustments_transaction_id'),
        sa.CheckConstraint('amount > 0', name='ck_employee_adjustments_adjustment_amount_positive'),
    )
    op.create_index('ix_employee_adjustments_employee_id', 'employee_adjustments', ['employee_id'])
    op.create_index('ix_employee_adjustments_adjustment_type', 'employee_adjustments', ['adjustment_type'])
    op.create_index('ix_employee_adjustments_status', 'employee_adjustments', ['status'])
    op.create_index('ix_employee_adjustments_salary_payment_id', 'employee_adjustments', ['salary_payment_id'])
    op.create_index('ix_employee_adjustments_created_by_id', 'employee_adjustments', ['created_by_id'])
    op.create_index(
        'ix_employee_adjustments_employee_status_date',
        'employee_adjustments',
        ['employee_id', 'status', 'adjustment_date'],
    )

    # ===========================================
    # AUDIT LOGS
    # ===========================================
    op.create_table('audit_logs',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), nullable=True),
        sa.Column('branch_id', UUID(as_uuid=True), nullable=True),
        sa.Column('action', audit_action, nullable=False),
        sa.Column('target_entity_type', sa.String(100), nullable=False,
                  comment='Type of entity (employee_adjustment, salary_payment, ...)'),
        sa.Column('target_entity_id', sa.String(100), nullable=False),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_audit_logs'),
    )
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])
    op.create_index('ix_audit_logs_branch_id', 'audit_logs', ['branch_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_target_entity_type', 'audit_logs', ['target_entity_type'])
    op.create_index('ix_audit_logs_target_entity_id', 'audit_logs', ['target_entity_id'])
    op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'])


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('employee_adjustments')
    op.drop_table('salary_payments')
    op.drop_table('transactions')
    op.drop_table('employees')
    op.drop_table('users')
    op.drop_table('branches')

    bind = op.get_bind()
    for enum_type in (
        audit_action, adjustment_status, adjustment_type, payment_method,
        transaction_category, transaction_type, employment_status, user_role,
    ):
        enum_type.drop(bind, checkfirst=True)
