"""Capability interface consumed by the gateway and the service-type ids."""
from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from ..chain.primitives import interface_id, normalize_address
from ..exceptions import ContractNotFound, InvalidService

logger = logging.getLogger(__name__)

LENDING_SERVICE_FUNCTIONS = (
    "lend(bytes,uint256,uint256,address)",
    "withdraw(bytes,uint256)",
    "getBalance(address)",
)

BORROW_SERVICE_FUNCTIONS = (
    "borrow(bytes,uint256,uint256,uint256,address)",
    "pay(bytes,uint256,uint256)",
    "calculateRequiredCollateral(uint256,address)",
    "withdraw(bytes,address)",
)

LENDING_SERVICE_INTERFACE_ID = interface_id(*LENDING_SERVICE_FUNCTIONS)
BORROW_SERVICE_INTERFACE_ID = interface_id(*BORROW_SERVICE_FUNCTIONS)


@runtime_checkable
class ServiceCapability(Protocol):
    """What the registry needs from any service, whatever its concrete kind."""

    def owner(self) -> str:
        ...

    def get_service_type(self) -> str:
        ...

    def supports_interface(self, interface_id: str) -> bool:
        ...


def resolve_service(chain, address: str) -> ServiceCapability:
    """Look up a deployed service and check it exposes the capability."""
    address = normalize_address(address)
    try:
        contract = chain.get_contract(address)
    except ContractNotFound:
        raise InvalidService(address) from None
    if not isinstance(contract, ServiceCapability):
        logger.debug(f"Contract at {address} does not expose the service capability")
        raise InvalidService(address)
    return contract
