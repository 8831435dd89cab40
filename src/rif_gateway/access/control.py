"""
Gateway role registry.

Roles are stored as two flat relations: role -> ordered member list and
role -> administering role. The deployer receives OWNER. OWNER is held
by exactly one address at a time and moves only through change_owner,
which grants the new owner and revokes the old one in the same call.
"""
from __future__ import annotations

import logging
from typing import Dict, List

from ..chain.contract import Contract, external
from ..chain.primitives import ZERO_ADDRESS, is_zero_address, normalize_address
from ..exceptions import InvalidAddress, NewOwnerIsCurrentOwner, Unauthorized
from .roles import ROLE_ADMINS, Role, role_name

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_ROLE = "0x" + "00" * 32


def _role_key(role) -> str:
    return role.value if isinstance(role, Role) else role


class GatewayAccessControl(Contract):
    """Role-based access control shared by every gateway contract."""

    def __init__(self, chain, address: str):
        super().__init__(chain, address)
        self._members: Dict[str, List[str]] = {role.value: [] for role in Role}
        self._admins: Dict[str, str] = {}

        for role, admin in ROLE_ADMINS.items():
            self._admins[role.value] = admin.value
            self.emit("RoleAdminChanged", role.value, DEFAULT_ADMIN_ROLE, admin.value)

        self._grant(Role.OWNER.value, self.msg.sender)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_role(self, role: str, account: str) -> bool:
        return normalize_address(account) in self._members.get(_role_key(role), [])

    def get_role_admin(self, role: str) -> str:
        return self._admins.get(_role_key(role), DEFAULT_ADMIN_ROLE)

    def get_role_members(self, role: str) -> List[str]:
        return list(self._members.get(_role_key(role), []))

    def owner(self) -> str:
        owners = self._members[Role.OWNER.value]
        return owners[0] if owners else ZERO_ADDRESS

    def is_owner(self, account: str) -> bool:
        return self.has_role(Role.OWNER, account)

    def is_low_level_operator(self, account: str) -> bool:
        return self.has_role(Role.LOW_LEVEL_OPERATOR, account)

    def is_high_level_operator(self, account: str) -> bool:
        return self.has_role(Role.HIGH_LEVEL_OPERATOR, account)

    def is_financial_owner(self, account: str) -> bool:
        return self.has_role(Role.FINANCIAL_OWNER, account)

    def is_financial_operator(self, account: str) -> bool:
        return self.has_role(Role.FINANCIAL_OPERATOR, account)

    # ------------------------------------------------------------------
    # Generic role management
    # ------------------------------------------------------------------

    @external
    def grant_role(self, role: str, account: str) -> None:
        role = self._managed_role(role)
        self._check_role(self.get_role_admin(role), self.msg.sender)
        self._grant(role, account)

    @external
    def revoke_role(self, role: str, account: str) -> None:
        role = self._managed_role(role)
        self._check_role(self.get_role_admin(role), self.msg.sender)
        self._revoke(role, account)

    @external
    def renounce_role(self, role: str, account: str) -> None:
        role = self._managed_role(role)
        if normalize_address(account) != self.msg.sender:
            raise Unauthorized("AccessControl: can only renounce roles for self", account=self.msg.sender)
        self._revoke(role, account)

    @external
    def change_owner(self, new_owner: str) -> None:
        self._check_role(Role.OWNER.value, self.msg.sender)
        new_owner = normalize_address(new_owner)
        if is_zero_address(new_owner):
            raise InvalidAddress(new_owner)
        previous = self.msg.sender
        if new_owner == previous:
            raise NewOwnerIsCurrentOwner()

        self._members[Role.OWNER.value].append(new_owner)
        self.emit("RoleGranted", Role.OWNER.value, new_owner, previous)
        self._members[Role.OWNER.value].remove(previous)
        self.emit("RoleRevoked", Role.OWNER.value, previous, previous)
        logger.info(f"Gateway ownership moved from {previous} to {new_owner}")

    # ------------------------------------------------------------------
    # Role-specific shortcuts
    # ------------------------------------------------------------------

    @external
    def add_low_level_operator(self, account: str) -> None:
        self._check_role(Role.OWNER.value, self.msg.sender)
        self._grant(Role.LOW_LEVEL_OPERATOR.value, account)

    @external
    def remove_low_level_operator(self, account: str) -> None:
        self._check_role(Role.OWNER.value, self.msg.sender)
        self._revoke(Role.LOW_LEVEL_OPERATOR.value, account)

    @external
    def add_high_level_operator(self, account: str) -> None:
        self._check_role(Role.OWNER.value, self.msg.sender)
        self._grant(Role.HIGH_LEVEL_OPERATOR.value, account)

    @external
    def remove_high_level_operator(self, account: str) -> None:
        self._check_role(Role.OWNER.value, self.msg.sender)
        self._revoke(Role.HIGH_LEVEL_OPERATOR.value, account)

    @external
    def add_financial_owner(self, account: str) -> None:
        self._check_role(Role.OWNER.value, self.msg.sender)
        self._grant(Role.FINANCIAL_OWNER.value, account)

    @external
    def remove_financial_owner(self, account: str) -> None:
        self._check_role(Role.OWNER.value, self.msg.sender)
        self._revoke(Role.FINANCIAL_OWNER.value, account)

    @external
    def add_financial_operator(self, account: str) -> None:
        self._check_role(Role.FINANCIAL_OWNER.value, self.msg.sender)
        self._grant(Role.FINANCIAL_OPERATOR.value, account)

    @external
    def remove_financial_operator(self, account: str) -> None:
        self._check_role(Role.FINANCIAL_OWNER.value, self.msg.sender)
        self._revoke(Role.FINANCIAL_OPERATOR.value, account)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _managed_role(self, role: str) -> str:
        role = _role_key(role)
        if role == Role.OWNER.value:
            raise Unauthorized("OWNER can only be transferred with change_owner", role=role)
        return role

    def _check_role(self, role: str, account: str) -> None:
        if not self.has_role(role, account):
            raise Unauthorized(f"Not {role_name(role)} role", account=account, role=role)

    def _grant(self, role: str, account: str) -> None:
        account = normalize_address(account)
        if is_zero_address(account):
            raise InvalidAddress(account)
        members = self._members.setdefault(role, [])
        if account in members:
            return
        members.append(account)
        self.emit("RoleGranted", role, account, self.msg.sender)
        logger.info(f"Granted {role_name(role)} to {account}")

    def _revoke(self, role: str, account: str) -> None:
        account = normalize_address(account)
        members = self._members.get(role, [])
        if account not in members:
            return
        members.remove(account)
        self.emit("RoleRevoked", role, account, self.msg.sender)
        logger.info(f"Revoked {role_name(role)} from {account}")
