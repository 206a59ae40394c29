"""Add salary increases and resignation date

Revision ID: 20261019_1000
Revises: 20261019_0900
Create Date: 2026-10-19 10:00:00.000000

This migration adds:
- employees.resignation_date: set when an employee resigns
- salary_increases: history of base salary raises
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision = '20261019_1000'
down_revision = '20261019_0900'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.add_column('employees', sa.Column('resignation_date', sa.Date(), nullable=True))

    # ===========================================
    # SALARY INCREASES
    # ===========================================
    op.create_table('salary_increases',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('employee_id', UUID(as_uuid=True), nullable=False),
        sa.Column('previous_salary', sa.Numeric(15, 2), nullable=False),
        sa.Column('new_salary', sa.Numeric(15, 2), nullable=False),
        sa.Column('increase_amount', sa.Numeric(15, 2), nullable=False),
        sa.Column('effective_date', sa.Date(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('created_by_id', UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_salary_increases'),
        sa.ForeignKeyConstraint(['employee_id'], ['employees.id'], name='fk_salary_increases_employee_id_employees', ondelete='RESTRICT'),
        sa.CheckConstraint('increase_amount > 0', name='ck_salary_increases_increase_amount_positive'),
    )
    op.create_index('ix_salary_increases_employee_id', 'salary_increases', ['employee_id'])
    op.create_index('ix_salary_increases_created_by_id', 'salary_increases', ['created_by_id'])


def downgrade() -> None:
    op.drop_table('salary_increases')
    op.drop_column('employees', 'resignation_date')
