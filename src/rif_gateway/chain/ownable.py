"""Single-owner authorization mixin."""
from __future__ import annotations

import logging
from typing import Optional

from ..exceptions import NewOwnerIsCurrentOwner, Unauthorized
from .contract import external
from .primitives import ZERO_ADDRESS, is_zero_address, normalize_address

logger = logging.getLogger(__name__)


class Ownable:
    """Mixin for contracts administered by one address.

    Host classes call ``_init_ownable`` from their constructor or
    initializer. Helpers avoid ``super()`` so that they also work when the
    host is reached through a proxy.
    """

    def _init_ownable(self, owner: str) -> None:
        self._owner: Optional[str] = normalize_address(owner)
        self.emit("OwnershipTransferred", ZERO_ADDRESS, self._owner)

    def owner(self) -> str:
        return getattr(self, "_owner", None) or ZERO_ADDRESS

    def _only_owner(self) -> None:
        if self.msg.sender != self.owner():
            raise Unauthorized("Ownable: caller is not the owner", account=self.msg.sender)

    @external
    def transfer_ownership(self, new_owner: str) -> None:
        self._only_owner()
        new_owner = normalize_address(new_owner)
        if is_zero_address(new_owner):
            raise Unauthorized("Ownable: new owner is address zero")
        if new_owner == self.owner():
            raise NewOwnerIsCurrentOwner()
        previous = self._owner
        self._owner = new_owner
        self.emit("OwnershipTransferred", previous, new_owner)
        logger.info(f"Ownership of {self.address} transferred from {previous} to {new_owner}")
