"""Role identifiers and their administering roles."""
from __future__ import annotations

from enum import Enum

from ..chain.primitives import keccak_text


class Role(str, Enum):
    """Gateway roles; the value is keccak256 of the role name."""
    OWNER = keccak_text("OWNER")
    LOW_LEVEL_OPERATOR = keccak_text("LOW_LEVEL_OPERATOR")
    HIGH_LEVEL_OPERATOR = keccak_text("HIGH_LEVEL_OPERATOR")
    FINANCIAL_OWNER = keccak_text("FINANCIAL_OWNER")
    FINANCIAL_OPERATOR = keccak_text("FINANCIAL_OPERATOR")


# Role -> role allowed to grant and revoke it
ROLE_ADMINS = {
    Role.OWNER: Role.OWNER,
    Role.LOW_LEVEL_OPERATOR: Role.OWNER,
    Role.HIGH_LEVEL_OPERATOR: Role.OWNER,
    Role.FINANCIAL_OWNER: Role.OWNER,
    Role.FINANCIAL_OPERATOR: Role.FINANCIAL_OWNER,
}


def role_name(role: str) -> str:
    try:
        return Role(role).name
    except ValueError:
        return role
