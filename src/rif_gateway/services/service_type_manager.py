"""Whitelist of service interface ids accepted by the gateway."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List

from ..chain.contract import Contract, external
from ..chain.primitives import format_interface_id, normalize_address
from ..exceptions import GatewayValidationError, Unauthorized
from .interfaces import resolve_service

logger = logging.getLogger(__name__)


@dataclass
class ServiceTypeEntry:
    """A registered type.

    There is no disable operation: add_service_type always stores the
    entry with supported=True, and re-adding only renames it.
    """
    interface_id: str
    name: str
    supported: bool = True


class ServiceTypeManager(Contract):
    """Registry of recognized service types.

    Entries are only ever added or renamed. Removing a type would strand
    services that were registered under it.
    """

    def __init__(self, chain, address: str, access_control: str):
        super().__init__(chain, address)
        self._access_control = normalize_address(access_control)
        self._service_types: Dict[str, ServiceTypeEntry] = {}

    @external
    def add_service_type(self, name: str, interface_id: Any) -> None:
        access_control = self.chain.get_contract(self._access_control)
        sender = self.msg.sender
        if not (access_control.is_owner(sender) or access_control.is_high_level_operator(sender)):
            raise Unauthorized("Not OWNER or HIGH_LEVEL_OPERATOR role", account=sender)
        if not name:
            raise GatewayValidationError("Service type name must not be empty", details={"name": name})

        interface_id = format_interface_id(interface_id)
        self._service_types[interface_id] = ServiceTypeEntry(interface_id=interface_id, name=name)
        self.emit("ServiceTypeAdded", interface_id, name)
        logger.info(f"Service type {name} registered as {interface_id}")

    def service_types(self, interface_id: Any) -> str:
        entry = self._service_types.get(format_interface_id(interface_id))
        return entry.name if entry else ""

    def get_supported_service_types(self) -> List[ServiceTypeEntry]:
        return [replace(entry) for entry in self._service_types.values() if entry.supported]

    def supports_interface(self, interface_id: Any) -> bool:
        entry = self._service_types.get(format_interface_id(interface_id))
        return entry is not None and entry.supported

    def supports_service(self, service_address: str) -> bool:
        try:
            service = resolve_service(self.chain, service_address)
            service_type = format_interface_id(service.get_service_type())
            return self.supports_interface(service_type) and bool(service.supports_interface(service_type))
        except Exception as e:
            logger.debug(f"Service {service_address} failed the type check: {e}")
            return False
