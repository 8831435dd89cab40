"""Service registry: service types, providers and the gateway."""
from .gateway import RIFGateway
from .interfaces import (
    BORROW_SERVICE_INTERFACE_ID,
    LENDING_SERVICE_INTERFACE_ID,
    ServiceCapability,
)
from .providers import ProviderInfo
from .service import BorrowService, LendingService, PaybackOption, Service, ServiceListing
from .service_type_manager import ServiceTypeEntry, ServiceTypeManager

__all__ = [
    "RIFGateway",
    "ProviderInfo",
    "ServiceTypeManager",
    "ServiceTypeEntry",
    "ServiceCapability",
    "Service",
    "LendingService",
    "BorrowService",
    "ServiceListing",
    "PaybackOption",
    "LENDING_SERVICE_INTERFACE_ID",
    "BORROW_SERVICE_INTERFACE_ID",
]
