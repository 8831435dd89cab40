"""
Provider and service bookkeeping.

Per provider the lifecycle is unknown -> pending -> validated:
a provider entry appears on its first service registration or
validation request, and becomes validated only when an authorized
account validates it after a request. There is no way back from
validated.

Services are kept in registration order. Removal is order-preserving.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from ..chain.contract import external
from ..chain.primitives import is_zero_address, normalize_address
from ..exceptions import (
    DuplicatedService,
    InvalidProvider,
    InvalidProviderAddress,
    InvalidService,
    InvalidServiceType,
    ValidationNotRequested,
)
from .interfaces import resolve_service

logger = logging.getLogger(__name__)


@dataclass
class ProviderInfo:
    provider: str
    validated: bool = False
    validation_requested: bool = False


class Providers(ABC):
    """Registry mixin. Hosts implement the two abstract hooks at the bottom."""

    def _init_providers(self) -> None:
        self._services: List[str] = []
        self._service_owners: Dict[str, str] = {}
        self._providers: List[ProviderInfo] = []
        self._provider_index: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @external
    def add_service(self, service_address: str) -> None:
        service_address = normalize_address(service_address)
        service = resolve_service(self.chain, service_address)

        try:
            reported_owner = normalize_address(service.owner())
        except Exception as e:
            logger.info(f"Service {service_address} failed to report its owner: {e}")
            raise InvalidService(service_address) from e

        if is_zero_address(reported_owner):
            raise InvalidProviderAddress(reported_owner)
        if reported_owner != self.msg.sender:
            raise InvalidProviderAddress(self.msg.sender)

        if not self._check_service_type(service_address):
            raise InvalidServiceType(service_address)

        if service_address in self._service_owners:
            raise DuplicatedService(service_address)

        self._services.append(service_address)
        self._service_owners[service_address] = reported_owner
        self._ensure_provider(reported_owner)
        self.emit("ServiceAdded", reported_owner, service_address)
        logger.info(f"Service {service_address} added for provider {reported_owner}")

    @external
    def remove_service(self, service_address: str) -> None:
        service_address = normalize_address(service_address)
        owner = self._service_owners.get(service_address)
        if owner is None:
            raise InvalidService(service_address)
        if owner != self.msg.sender:
            raise InvalidProviderAddress(self.msg.sender)

        self._services.remove(service_address)
        del self._service_owners[service_address]
        self.emit("ServiceRemoved", owner, service_address)
        logger.info(f"Service {service_address} removed by provider {owner}")

    # ------------------------------------------------------------------
    # Validation workflow
    # ------------------------------------------------------------------

    @external
    def request_validation(self, provider: str) -> None:
        # Any caller may request validation on behalf of any provider.
        provider = self._concrete_provider(provider)
        self._ensure_provider(provider).validation_requested = True
        self.emit("ValidationRequested", provider)
        logger.info(f"Validation requested for provider {provider}")

    @external
    def validate_provider(self, provider: str) -> None:
        self._authorize_validation()
        provider = self._concrete_provider(provider)
        info = self._find_provider(provider)
        if info is None or not info.validation_requested:
            raise ValidationNotRequested(provider)
        info.validated = True
        self.emit("ProviderValidated", provider)
        logger.info(f"Provider {provider} validated by {self.msg.sender}")

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def get_services_and_providers(self) -> Tuple[List[str], List[ProviderInfo]]:
        return self.get_services(), self.get_providers()

    def get_services(self) -> List[str]:
        return list(self._services)

    def get_providers(self) -> List[ProviderInfo]:
        return [replace(info) for info in self._providers]

    def get_provider(self, provider: str) -> Optional[ProviderInfo]:
        info = self._find_provider(normalize_address(provider))
        return replace(info) if info else None

    def get_services_by_provider(self, provider: str) -> List[str]:
        provider = normalize_address(provider)
        return [s for s in self._services if self._service_owners[s] == provider]

    def get_service_owner(self, service_address: str) -> Optional[str]:
        return self._service_owners.get(normalize_address(service_address))

    def is_registered_service(self, service_address: str) -> bool:
        return normalize_address(service_address) in self._service_owners

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _concrete_provider(self, provider: str) -> str:
        provider = normalize_address(provider)
        if is_zero_address(provider):
            raise InvalidProvider(provider)
        return provider

    def _find_provider(self, provider: str) -> Optional[ProviderInfo]:
        index = self._provider_index.get(provider)
        return None if index is None else self._providers[index]

    def _ensure_provider(self, provider: str) -> ProviderInfo:
        info = self._find_provider(provider)
        if info is None:
            info = ProviderInfo(provider=provider)
            self._provider_index[provider] = len(self._providers)
            self._providers.append(info)
        return info

    @abstractmethod
    def _check_service_type(self, service_address: str) -> bool:
        """Whether the service reports a type the gateway accepts."""

    @abstractmethod
    def _authorize_validation(self) -> None:
        """Raise unless msg.sender may validate providers."""
