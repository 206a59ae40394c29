"""
Seed Script: Demo Restaurant Data
=================================
Populates a development database with:

- Two branches
- One admin and one accountant per branch
- A handful of employees per branch

Prints a JWT access token for every user so the API can be exercised
without the identity service.

Run after `alembic upgrade head` (or start the app once in development mode).
"""

import asyncio
from datetime import date
from decimal import Decimal

# Add project root to path
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.database import async_session_maker
from app.models.branch import Branch
from app.models.payroll import Employee, EmploymentStatus
from app.models.user import User, UserRole
from app.utils.security import create_access_token


BRANCHES = ["Downtown", "Marina"]

EMPLOYEES = [
    ("Head Chef", Decimal("1200.00"), Decimal("150.00")),
    ("Line Cook", Decimal("650.00"), Decimal("50.00")),
    ("Waiter", Decimal("500.00"), Decimal("50.00")),
    ("Cashier", Decimal("550.00"), Decimal("0.00")),
]


async def get_or_create_branch(db: AsyncSession, name: str) -> Branch:
    result = await db.execute(select(Branch).where(Branch.name == name))
    branch = result.scalar_one_or_none()
    if branch:
        return branch
    branch = Branch(name=name, is_active=True)
    db.add(branch)
    await db.flush()
    print(f"Created branch {name}")
    return branch


async def get_or_create_user(
    db: AsyncSession,
    username: str,
    role: UserRole,
    branch: Branch = None,
) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user:
        return user
    user = User(
        username=username,
        full_name=username.replace(".", " ").title(),
        role=role,
        branch_id=branch.id if branch else None,
        is_active=True,
    )
    db.add(user)
    await db.flush()
    print(f"Created user {username} ({role.name})")
    return user


async def seed_employees(db: AsyncSession, branch: Branch, created_by: User) -> int:
    result = await db.execute(select(Employee).where(Employee.branch_id == branch.id))
    if result.scalars().first():
        return 0

    created = 0
    for position, base_salary, allowance in EMPLOYEES:
        db.add(Employee(
            branch_id=branch.id,
            name=f"{branch.name} {position}",
            position=position,
            base_salary=base_salary,
            allowance=allowance,
            status=EmploymentStatus.ACTIVE,
            hire_date=date(2024, 1, 15),
            created_by_id=created_by.id,
        ))
        created += 1
    await db.flush()
    return created


async def main():
    """Run all seed functions."""
    print("=" * 60)
    print("Seeding Demo Restaurant Data")
    print("=" * 60)

    tokens = {}
    async with async_session_maker() as db:
        admin = await get_or_create_user(db, "admin", UserRole.ADMIN)
        tokens[admin.username] = create_access_token({"sub": str(admin.id)})

        for name in BRANCHES:
            branch = await get_or_create_branch(db, name)
            accountant = await get_or_create_user(
                db, f"accountant.{name.lower()}", UserRole.ACCOUNTANT, branch,
            )
            tokens[accountant.username] = create_access_token({"sub": str(accountant.id)})

            created = await seed_employees(db, branch, admin)
            print(f"Created {created} employees in {name}")

        await db.commit()

    print()
    print("Access tokens:")
    for username, token in tokens.items():
        print(f"  {username}: {token}")
    print()
    print("=" * 60)
    print("Demo Data Seeding Complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
