"""
Admin role resolution for chat users.

Trust: ADMIN_ID_1 may act on every branch; each branch admin only on the
branch bound to them in config. Everyone else can only search.
"""
from dataclasses import dataclass
from typing import Dict, Optional

from app.core.config import settings


class Role:
    SUPER_ADMIN = "super_admin"
    BRANCH_ADMIN = "branch_admin"
    CUSTOMER = "customer"


@dataclass(frozen=True)
class AdminIdentity:
    user_id: int
    role: str
    pharmacy_id: Optional[int] = None  # bound branch, branch admins only

    @property
    def is_admin(self) -> bool:
        return self.role in (Role.SUPER_ADMIN, Role.BRANCH_ADMIN)

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN


def resolve_identity(
    user_id: int,
    super_admin_id: Optional[int] = None,
    branch_admins: Optional[Dict[int, int]] = None,
) -> AdminIdentity:
    """Map a Telegram user id to its role. Defaults come from settings."""
    if super_admin_id is None:
        super_admin_id = settings.SUPER_ADMIN_ID
    if branch_admins is None:
        branch_admins = settings.BRANCH_ADMINS

    if super_admin_id and user_id == super_admin_id:
        return AdminIdentity(user_id=user_id, role=Role.SUPER_ADMIN)
    if user_id in branch_admins:
        return AdminIdentity(user_id=user_id, role=Role.BRANCH_ADMIN, pharmacy_id=branch_admins[user_id])
    return AdminIdentity(user_id=user_id, role=Role.CUSTOMER)


def valid_branch(pharmacy_id: int) -> bool:
    return 1 <= pharmacy_id <= settings.BRANCH_COUNT
