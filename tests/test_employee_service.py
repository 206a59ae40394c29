"""
Tests for the employee directory: EmployeeService and the /employees API.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from app.models.audit import AuditAction, AuditLog
from app.models.payroll import Employee, EmploymentStatus, SalaryIncrease
from app.services.employee_service import EmployeeService
from app.services.payroll_service import PayrollService
from app.utils.error_handling import (
    BranchAccessDeniedException,
    BranchNotFoundException,
    EmployeeInactiveException,
    EmployeeNotFoundException,
    InvalidAmountException,
    ValidationException,
)


class TestEmployeeService:
    """Tests for EmployeeService."""

    @pytest.mark.asyncio
    async def test_create_employee(self, db_session, test_branch, accountant_user):
        service = EmployeeService(db_session)

        employee = await service.create_employee(
            branch_id=test_branch.id,
            name="  Rana Host ",
            position="Host",
            base_salary="480",
            allowance="20.5",
            hire_date=date(2024, 1, 2),
            acting_user=accountant_user,
        )

        assert employee.name == "Rana Host"
        assert employee.base_salary == Decimal("480.00")
        assert employee.allowance == Decimal("20.50")
        assert employee.status == EmploymentStatus.ACTIVE
        assert employee.created_by_id == accountant_user.id

    @pytest.mark.asyncio
    async def test_rejects_negative_salary(self, db_session, test_branch, accountant_user):
        service = EmployeeService(db_session)

        with pytest.raises(InvalidAmountException):
            await service.create_employee(
                branch_id=test_branch.id,
                name="Rana Host",
                position="Host",
                base_salary="-1",
                hire_date=date(2024, 1, 2),
                acting_user=accountant_user,
            )

    @pytest.mark.asyncio
    async def test_rejects_blank_name(self, db_session, test_branch, accountant_user):
        service = EmployeeService(db_session)

        with pytest.raises(ValidationException):
            await service.create_employee(
                branch_id=test_branch.id,
                name="   ",
                position="Host",
                base_salary="480",
                hire_date=date(2024, 1, 2),
                acting_user=accountant_user,
            )

    @pytest.mark.asyncio
    async def test_branch_checks(self, db_session, other_branch, accountant_user):
        service = EmployeeService(db_session)

        with pytest.raises(BranchAccessDeniedException):
            await service.create_employee(
                branch_id=other_branch.id,
                name="Rana Host",
                position="Host",
                base_salary="480",
                hire_date=date(2024, 1, 2),
                acting_user=accountant_user,
            )
        with pytest.raises(BranchNotFoundException):
            await service.create_employee(
                branch_id=uuid4(),
                name="Rana Host",
                position="Host",
                base_salary="480",
                hire_date=date(2024, 1, 2),
                acting_user=accountant_user,
            )

    @pytest.mark.asyncio
    async def test_get_accessible_employee(
        self, db_session, test_employee, other_accountant, accountant_user
    ):
        service = EmployeeService(db_session)

        found = await service.get_accessible_employee(test_employee.id, accountant_user)
        assert found.id == test_employee.id

        with pytest.raises(BranchAccessDeniedException):
            await service.get_accessible_employee(test_employee.id, other_accountant)
        with pytest.raises(EmployeeNotFoundException):
            await service.get_employee(uuid4())

    @pytest.mark.asyncio
    async def test_list_employees(
        self, db_session, test_employee, second_employee, inactive_employee,
        other_branch_employee, admin_user, accountant_user
    ):
        service = EmployeeService(db_session)

        own = await service.list_employees(accountant_user)
        active = await service.list_employees(accountant_user, status=EmploymentStatus.ACTIVE)
        everything = await service.list_employees(admin_user)

        assert [e.name for e in own] == ["Former Employee", "Lina Cook", "Sami Waiter"]
        assert [e.name for e in active] == ["Lina Cook", "Sami Waiter"]
        assert len(everything) == 4


class TestEmployeeLifecycle:
    """Tests for resignations and salary raises."""

    @pytest.mark.asyncio
    async def test_resign_employee(self, db_session, test_employee, accountant_user):
        service = EmployeeService(db_session)

        employee = await service.resign_employee(
            test_employee.id, accountant_user, resignation_date=date(2024, 4, 30),
        )

        assert employee.status == EmploymentStatus.INACTIVE
        assert employee.resignation_date == date(2024, 4, 30)

        log = (await db_session.execute(
            select(AuditLog).where(
                AuditLog.target_entity_id == str(employee.id),
                AuditLog.action == AuditAction.UPDATE,
            )
        )).scalar_one()
        assert log.new_values["status"] == "inactive"

    @pytest.mark.asyncio
    async def test_resign_twice_is_rejected(self, db_session, inactive_employee, admin_user):
        service = EmployeeService(db_session)

        with pytest.raises(ValidationException):
            await service.resign_employee(inactive_employee.id, admin_user)

    @pytest.mark.asyncio
    async def test_resigned_employee_cannot_be_settled(
        self, db_session, test_employee, accountant_user
    ):
        """Neither salary nor adjustments can follow a resignation."""
        employee_id = test_employee.id
        await EmployeeService(db_session).resign_employee(employee_id, accountant_user)
        payroll = PayrollService(db_session)

        with pytest.raises(EmployeeInactiveException):
            await payroll.pay_salary(employee_id, "2024-03", accountant_user)
        await db_session.refresh(accountant_user)
        with pytest.raises(EmployeeInactiveException):
            await payroll.create_adjustment(
                employee_id, "BONUS", "10.00", date(2024, 3, 5), accountant_user,
            )

    @pytest.mark.asyncio
    async def test_salary_increase_applies_to_settlement(
        self, db_session, test_employee, accountant_user
    ):
        employee_id = test_employee.id
        service = EmployeeService(db_session)

        increase = await service.record_salary_increase(
            employee_id, "600.00", date(2024, 3, 1), accountant_user, reason="Annual review",
        )

        assert increase.previous_salary == Decimal("500.00")
        assert increase.new_salary == Decimal("600.00")
        assert increase.increase_amount == Decimal("100.00")
        assert increase.created_by_id == accountant_user.id

        details = await PayrollService(db_session).get_salary_details(
            employee_id, "2024-03", accountant_user,
        )
        assert details.base_salary == Decimal("600.00")
        assert details.gross_salary == Decimal("650.00")

        history = await service.list_salary_increases(employee_id, accountant_user)
        assert [i.id for i in history] == [increase.id]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("new_salary", ["500.00", "450.00", "1e30"])
    async def test_salary_increase_must_raise_salary(
        self, db_session, test_employee, accountant_user, new_salary
    ):
        employee_id = test_employee.id
        service = EmployeeService(db_session)

        with pytest.raises(InvalidAmountException):
            await service.record_salary_increase(
                employee_id, new_salary, date(2024, 3, 1), accountant_user,
            )

        employee = (await db_session.execute(
            select(Employee).where(Employee.id == employee_id)
        )).scalar_one()
        assert employee.base_salary == Decimal("500.00")
        assert (await db_session.execute(select(SalaryIncrease))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_salary_increase_for_resigned_employee(
        self, db_session, inactive_employee, admin_user
    ):
        service = EmployeeService(db_session)

        with pytest.raises(EmployeeInactiveException):
            await service.record_salary_increase(
                inactive_employee.id, "900.00", date(2024, 3, 1), admin_user,
            )

    @pytest.mark.asyncio
    async def test_other_branch_is_forbidden(self, db_session, test_employee, other_accountant):
        employee_id = test_employee.id
        service = EmployeeService(db_session)

        with pytest.raises(BranchAccessDeniedException):
            await service.resign_employee(employee_id, other_accountant)
        await db_session.refresh(other_accountant)
        with pytest.raises(BranchAccessDeniedException):
            await service.record_salary_increase(
                employee_id, "900.00", date(2024, 3, 1), other_accountant,
            )


class TestEmployeeEndpoints:
    """Tests for /employees."""

    @pytest.mark.asyncio
    async def test_create_employee(self, client, accountant_headers, test_branch):
        response = await client.post(
            "/api/v1/employees",
            json={
                "branchId": str(test_branch.id),
                "name": "Rana Host",
                "position": "Host",
                "baseSalary": "480.00",
                "hireDate": "2024-01-02",
            },
            headers=accountant_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["baseSalary"] == "480.00"
        assert data["allowance"] == "0.00"
        assert data["status"] == "ACTIVE"

    @pytest.mark.asyncio
    async def test_get_employee(self, client, accountant_headers, other_accountant_headers, test_employee):
        employee_id = str(test_employee.id)

        own = await client.get(f"/api/v1/employees/{employee_id}", headers=accountant_headers)
        foreign = await client.get(f"/api/v1/employees/{employee_id}", headers=other_accountant_headers)
        missing = await client.get(f"/api/v1/employees/{uuid4()}", headers=accountant_headers)

        assert own.status_code == 200
        assert own.json()["name"] == "Sami Waiter"
        assert foreign.status_code == 403
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_list_by_status(self, client, admin_headers, test_employee, inactive_employee):
        response = await client.get(
            "/api/v1/employees", params={"status": "inactive"}, headers=admin_headers,
        )

        assert response.status_code == 200
        assert [e["name"] for e in response.json()] == ["Former Employee"]

    @pytest.mark.asyncio
    async def test_resign(self, client, accountant_headers, other_accountant_headers, test_employee):
        employee_id = str(test_employee.id)

        foreign = await client.post(
            f"/api/v1/employees/{employee_id}/resign", json={}, headers=other_accountant_headers,
        )
        response = await client.post(
            f"/api/v1/employees/{employee_id}/resign",
            json={"resignationDate": "2024-04-30"},
            headers=accountant_headers,
        )
        again = await client.post(
            f"/api/v1/employees/{employee_id}/resign", json={}, headers=accountant_headers,
        )

        assert foreign.status_code == 403
        assert response.status_code == 200
        assert response.json()["status"] == "INACTIVE"
        assert response.json()["resignationDate"] == "2024-04-30"
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_salary_increases(self, client, accountant_headers, test_employee):
        employee_id = str(test_employee.id)

        response = await client.post(
            f"/api/v1/employees/{employee_id}/salary-increases",
            json={"newSalary": "575.00", "effectiveDate": "2024-03-01", "reason": "Promotion"},
            headers=accountant_headers,
        )
        listed = await client.get(
            f"/api/v1/employees/{employee_id}/salary-increases", headers=accountant_headers,
        )
        employee = await client.get(f"/api/v1/employees/{employee_id}", headers=accountant_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["previousSalary"] == "500.00"
        assert data["increaseAmount"] == "75.00"
        assert [i["id"] for i in listed.json()] == [data["id"]]
        assert employee.json()["baseSalary"] == "575.00"

    @pytest.mark.asyncio
    async def test_salary_increase_below_current(self, client, accountant_headers, test_employee):
        response = await client.post(
            f"/api/v1/employees/{test_employee.id}/salary-increases",
            json={"newSalary": "400.00", "effectiveDate": "2024-03-01"},
            headers=accountant_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_AMOUNT"
