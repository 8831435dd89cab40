"""Transactional contract runtime."""
from .contract import Contract, external
from .ownable import Ownable
from .primitives import ZERO_ADDRESS, interface_id, normalize_address
from .proxy import IMPLEMENTATION_SLOT, ERC1967Proxy, UUPSUpgradeable, deploy_proxy
from .vm import CallFrame, Chain, Event, Receipt

__all__ = [
    "Chain",
    "CallFrame",
    "Event",
    "Receipt",
    "Contract",
    "external",
    "Ownable",
    "ERC1967Proxy",
    "UUPSUpgradeable",
    "IMPLEMENTATION_SLOT",
    "deploy_proxy",
    "ZERO_ADDRESS",
    "interface_id",
    "normalize_address",
]
