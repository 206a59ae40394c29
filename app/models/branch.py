"""
Mataam Back Office - Branch Model

Restaurant branches. Employees, ledger transactions and branch-scoped users
all hang off a branch.
"""

from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import BaseModel

if TYPE_CHECKING:
    from app.models.payroll import Employee


class Branch(BaseModel):
    """A restaurant branch."""

    __tablename__ = "branches"

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    employees: Mapped[List["Employee"]] = relationship(
        "Employee",
        back_populates="branch",
    )

    def __repr__(self) -> str:
        return f"<Branch(id={self.id}, name={self.name})>"
