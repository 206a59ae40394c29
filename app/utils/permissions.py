"""
Mataam Back Office - Branch Visibility

Which branches an acting user may see and act on.

| Role       | Branches visible     |
|------------|----------------------|
| Admin      | all                  |
| Accountant | the assigned branch  |

An accountant with no branch assigned sees nothing.
"""

import uuid
from dataclasses import dataclass
from typing import Optional, Union

from app.models.user import User, UserRole
from app.utils.error_handling import BranchAccessDeniedException


@dataclass(frozen=True)
class UnrestrictedScope:
    """Scope of an admin: every branch."""

    def can_access_branch(self, branch_id: Optional[uuid.UUID]) -> bool:
        return True

    @property
    def branch_id(self) -> Optional[uuid.UUID]:
        return None


@dataclass(frozen=True)
class BranchScope:
    """Scope of a branch-bound user."""

    branch_id: Optional[uuid.UUID]

    def can_access_branch(self, branch_id: Optional[uuid.UUID]) -> bool:
        return self.branch_id is not None and branch_id == self.branch_id


ActorScope = Union[UnrestrictedScope, BranchScope]


def scope_for_user(user: User) -> ActorScope:
    """Build the visibility scope of a user."""
    if user.role == UserRole.ADMIN:
        return UnrestrictedScope()
    return BranchScope(branch_id=user.branch_id)


def ensure_branch_access(
    scope: ActorScope,
    branch_id: Optional[uuid.UUID],
    resource_type: str = "Branch",
) -> None:
    """
    Raise if the scope does not cover the branch.

    Raises:
        BranchAccessDeniedException: the branch is outside the scope
    """
    if not scope.can_access_branch(branch_id):
        raise BranchAccessDeniedException(resource_type, branch_id)
