"""
Tests for the ledger: LedgerService and the /transactions API.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from app.models.audit import AuditLog
from app.models.transaction import (
    PaymentMethod,
    TransactionCategory,
    TransactionType,
)
from app.services.ledger_service import LedgerService
from app.utils.error_handling import (
    BranchAccessDeniedException,
    BranchNotFoundException,
    EmployeeInactiveException,
    InvalidAmountException,
    InvalidCategoryException,
    InvalidPaymentMethodException,
    TransactionNotFoundException,
    ValidationException,
)


class TestRecordTransaction:
    """Tests for recording ledger rows."""

    @pytest.mark.asyncio
    async def test_record_income(self, db_session, test_branch, accountant_user):
        service = LedgerService(db_session)

        transaction = await service.record_transaction(
            branch_id=test_branch.id,
            transaction_type=TransactionType.INCOME,
            category=TransactionCategory.SALES,
            amount="1250.75",
            transaction_date=date(2024, 3, 1),
            payment_method="MASTER",
            acting_user=accountant_user,
        )

        assert transaction.id is not None
        assert transaction.amount == Decimal("1250.75")
        assert transaction.payment_method == PaymentMethod.MASTER
        assert transaction.created_by_id == accountant_user.id

        log = (await db_session.execute(
            select(AuditLog).where(AuditLog.target_entity_id == str(transaction.id))
        )).scalar_one()
        assert log.target_entity_type == "transaction"
        assert log.new_values["amount"] == "1250.75"

    @pytest.mark.asyncio
    async def test_category_must_match_type(self, db_session, test_branch, accountant_user):
        service = LedgerService(db_session)

        with pytest.raises(InvalidCategoryException):
            await service.record_transaction(
                branch_id=test_branch.id,
                transaction_type=TransactionType.INCOME,
                category=TransactionCategory.RENT,
                amount="10.00",
                transaction_date=date(2024, 3, 1),
                acting_user=accountant_user,
            )

    @pytest.mark.asyncio
    async def test_rejects_non_positive_amount(self, db_session, test_branch, accountant_user):
        service = LedgerService(db_session)

        with pytest.raises(InvalidAmountException):
            await service.record_expense(
                branch_id=test_branch.id,
                category=TransactionCategory.SUPPLIES,
                amount="0",
                transaction_date=date(2024, 3, 1),
                acting_user=accountant_user,
            )

    @pytest.mark.asyncio
    async def test_rejects_unknown_payment_method(self, db_session, test_branch, accountant_user):
        service = LedgerService(db_session)

        with pytest.raises(InvalidPaymentMethodException):
            await service.record_expense(
                branch_id=test_branch.id,
                category=TransactionCategory.SUPPLIES,
                amount="10.00",
                transaction_date=date(2024, 3, 1),
                payment_method="VOUCHER",
                acting_user=accountant_user,
            )

    @pytest.mark.asyncio
    async def test_unknown_branch(self, db_session, admin_user):
        service = LedgerService(db_session)

        with pytest.raises(BranchNotFoundException):
            await service.record_expense(
                branch_id=uuid4(),
                category=TransactionCategory.RENT,
                amount="10.00",
                transaction_date=date(2024, 3, 1),
                acting_user=admin_user,
            )

    @pytest.mark.asyncio
    async def test_other_branch_is_forbidden(self, db_session, test_branch, other_accountant):
        service = LedgerService(db_session)

        with pytest.raises(BranchAccessDeniedException):
            await service.record_expense(
                branch_id=test_branch.id,
                category=TransactionCategory.RENT,
                amount="10.00",
                transaction_date=date(2024, 3, 1),
                acting_user=other_accountant,
            )

    @pytest.mark.asyncio
    async def test_salary_expense_needs_active_employee(
        self, db_session, test_branch, inactive_employee, admin_user
    ):
        service = LedgerService(db_session)

        with pytest.raises(EmployeeInactiveException):
            await service.record_expense(
                branch_id=test_branch.id,
                category=TransactionCategory.EMPLOYEE_SALARIES,
                amount="10.00",
                transaction_date=date(2024, 3, 1),
                employee_id=inactive_employee.id,
                acting_user=admin_user,
            )

    @pytest.mark.asyncio
    async def test_employee_must_belong_to_branch(
        self, db_session, test_branch, other_branch_employee, admin_user
    ):
        service = LedgerService(db_session)

        with pytest.raises(ValidationException):
            await service.record_expense(
                branch_id=test_branch.id,
                category=TransactionCategory.EMPLOYEE_SALARIES,
                amount="10.00",
                transaction_date=date(2024, 3, 1),
                employee_id=other_branch_employee.id,
                acting_user=admin_user,
            )


class TestQueryTransactions:
    """Tests for reading the ledger."""

    @pytest.mark.asyncio
    async def test_list_is_scoped_and_newest_first(
        self, db_session, test_branch, other_branch, admin_user, accountant_user
    ):
        service = LedgerService(db_session)
        for branch_id, day in [
            (test_branch.id, date(2024, 3, 1)),
            (test_branch.id, date(2024, 3, 9)),
            (other_branch.id, date(2024, 3, 5)),
        ]:
            await service.record_expense(
                branch_id=branch_id,
                category=TransactionCategory.UTILITIES,
                amount="40.00",
                transaction_date=day,
                acting_user=admin_user,
            )

        own = await service.list_transactions(accountant_user)
        everything = await service.list_transactions(admin_user)
        ranged = await service.list_transactions(
            admin_user, start_date=date(2024, 3, 2), end_date=date(2024, 3, 31),
        )

        assert [t.transaction_date for t in own] == [date(2024, 3, 9), date(2024, 3, 1)]
        assert len(everything) == 3
        assert len(ranged) == 2

    @pytest.mark.asyncio
    async def test_list_other_branch_is_forbidden(self, db_session, other_branch, accountant_user):
        service = LedgerService(db_session)

        with pytest.raises(BranchAccessDeniedException):
            await service.list_transactions(accountant_user, branch_id=other_branch.id)

    @pytest.mark.asyncio
    async def test_get_transaction(self, db_session, test_branch, admin_user, other_accountant):
        service = LedgerService(db_session)
        transaction = await service.record_expense(
            branch_id=test_branch.id,
            category=TransactionCategory.RENT,
            amount="900.00",
            transaction_date=date(2024, 3, 1),
            acting_user=admin_user,
        )

        fetched = await service.get_transaction(transaction.id, admin_user)
        assert fetched.id == transaction.id

        with pytest.raises(BranchAccessDeniedException):
            await service.get_transaction(transaction.id, other_accountant)
        with pytest.raises(TransactionNotFoundException):
            await service.get_transaction(uuid4(), admin_user)


class TestTransactionEndpoints:
    """Tests for /transactions."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, client, accountant_headers, test_branch):
        branch_id = str(test_branch.id)

        response = await client.post(
            "/api/v1/transactions",
            json={
                "branchId": branch_id,
                "type": "INCOME",
                "category": "SALES",
                "amount": "320.40",
                "date": "2024-03-02",
                "paymentMethod": "MASTER",
            },
            headers=accountant_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["type"] == "INCOME"
        assert data["category"] == "SALES"
        assert data["amount"] == "320.40"
        assert data["paymentMethod"] == "MASTER"

        listed = await client.get(
            "/api/v1/transactions", params={"type": "income"}, headers=accountant_headers,
        )
        assert [t["id"] for t in listed.json()] == [data["id"]]

    @pytest.mark.asyncio
    async def test_mismatched_category(self, client, accountant_headers, test_branch):
        response = await client.post(
            "/api/v1/transactions",
            json={
                "branchId": str(test_branch.id),
                "type": "INCOME",
                "category": "RENT",
                "amount": "10.00",
                "date": "2024-03-02",
            },
            headers=accountant_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_CATEGORY"

    @pytest.mark.asyncio
    async def test_unknown_transaction(self, client, admin_headers):
        response = await client.get(f"/api/v1/transactions/{uuid4()}", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "TRANSACTION_NOT_FOUND"
