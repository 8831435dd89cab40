"""
Service base contracts.

A service is owned by the provider that deployed it, reports its
service type as an ERC-165 interface id and publishes listings (the
offers end users pick from). Lending and borrowing variants only differ
in the interface they declare and the operations they must implement;
the integration with a concrete market is left to subclasses.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Dict, List, Optional

from ..chain.contract import Contract, external
from ..chain.ownable import Ownable
from ..chain.primitives import IERC165_INTERFACE_ID, ZERO_ADDRESS, format_interface_id, normalize_address
from ..exceptions import GatewayValidationError, InvalidAmount
from .interfaces import BORROW_SERVICE_INTERFACE_ID, LENDING_SERVICE_INTERFACE_ID

logger = logging.getLogger(__name__)


class PaybackOption(IntEnum):
    DAY = 0
    WEEK = 1
    BIMONTHLY = 2
    MONTHLY = 3


@dataclass
class ServiceListing:
    """An offer published by a service. Rates are 18-decimal fixed point."""
    id: int
    min_amount: int
    max_amount: int
    min_duration: int = 0
    max_duration: int = 0
    interest_rate: int = 0
    collateral_currency: str = ZERO_ADDRESS
    currency: str = ZERO_ADDRESS
    pay_back_option: PaybackOption = PaybackOption.DAY
    enabled: bool = True
    name: str = ""
    owner: str = ZERO_ADDRESS


class InvalidListing(GatewayValidationError):
    error_code = "InvalidListing"

    def __init__(self, listing_id: int) -> None:
        self.listing_id = listing_id
        super().__init__(f"Invalid listing: {listing_id}", details={"listing_id": listing_id})


class Service(Ownable, Contract):
    """Common behaviour of every service registered in the gateway."""

    SERVICE_TYPE: str = ""

    def __init__(
        self,
        chain,
        address: str,
        gateway: str,
        smart_wallet_factory: str,
        provider_name: str = "",
    ):
        super().__init__(chain, address)
        self._init_ownable(self.msg.sender)
        self._gateway = normalize_address(gateway)
        self._smart_wallet_factory = normalize_address(smart_wallet_factory)
        self._provider_name = provider_name
        self._listings: Dict[int, ServiceListing] = {}

    # ------------------------------------------------------------------
    # Capability
    # ------------------------------------------------------------------

    def get_service_type(self) -> str:
        return self.SERVICE_TYPE

    def supports_interface(self, interface_id: Any) -> bool:
        return format_interface_id(interface_id) in (IERC165_INTERFACE_ID, self.SERVICE_TYPE)

    def service_provider_name(self) -> str:
        return self._provider_name

    def get_gateway(self) -> str:
        return self._gateway

    def get_smart_wallet_factory(self) -> str:
        return self._smart_wallet_factory

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def get_listing(self, listing_id: int) -> ServiceListing:
        listing = self._listings.get(listing_id)
        if listing is None:
            raise InvalidListing(listing_id)
        return replace(listing)

    def get_listings_count(self) -> int:
        return len(self._listings)

    def get_listings(self) -> List[ServiceListing]:
        return [replace(listing) for listing in self._listings.values()]

    @external
    def add_listing(self, listing: ServiceListing) -> int:
        self._only_owner()
        self._check_listing_bounds(listing)
        listing_id = len(self._listings)
        self._listings[listing_id] = replace(listing, id=listing_id, owner=self.owner())
        self.emit("ListingCreated", listing_id, listing.currency)
        logger.info(f"Service {self.address} published listing {listing_id}")
        return listing_id

    @external
    def update_listing(self, listing: ServiceListing) -> None:
        self._only_owner()
        if listing.id not in self._listings:
            raise InvalidListing(listing.id)
        self._check_listing_bounds(listing)
        self._listings[listing.id] = replace(listing, owner=self.owner())
        self.emit("ListingUpdated", listing.id)

    @external
    def disable_listing(self, listing_id: int) -> None:
        self._only_owner()
        if listing_id not in self._listings:
            raise InvalidListing(listing_id)
        self._listings[listing_id].enabled = False
        self.emit("ListingDisabled", listing_id)

    def _check_listing_bounds(self, listing: ServiceListing) -> None:
        if listing.min_amount < 0 or listing.max_amount < listing.min_amount:
            raise InvalidAmount(listing.max_amount)

    def _enabled_listing(self, listing_id: int, amount: int) -> ServiceListing:
        listing = self.get_listing(listing_id)
        if not listing.enabled:
            raise InvalidListing(listing_id)
        if amount <= 0 or not listing.min_amount <= amount <= listing.max_amount:
            raise InvalidAmount(amount)
        return listing

    # ------------------------------------------------------------------
    # Gateway and wallet plumbing for subclasses
    # ------------------------------------------------------------------

    def _execute_for_user(self, request, signature: bytes, function: str, *args: Any, value: int = 0) -> Any:
        """Run self.<function> through the user's smart wallet.

        The wallet is created on first use. The request must name this
        service as executor; the wallet becomes msg.sender of the call.
        """
        factory = self.chain.get_contract(self._smart_wallet_factory)
        wallet_address = factory.get_smart_wallet_address(request.from_address)
        if not self.chain.is_contract(wallet_address):
            factory.create_user_smart_wallet(request.from_address, sender=self.address)
        wallet = self.chain.get_contract(wallet_address)
        return wallet.execute(request, signature, self.address, function, *args, sender=self.address, value=value)

    def _charge_consumption_fee(self, beneficiary: Optional[str]) -> None:
        gateway = self.chain.get_contract(self._gateway)
        gateway.charge_fee(beneficiary or self.owner(), sender=self.address)


class LendingService(Service, ABC):
    """Service that takes deposits on behalf of end users."""

    SERVICE_TYPE = LENDING_SERVICE_INTERFACE_ID

    @abstractmethod
    def lend(self, request, signature: bytes, listing_id: int, beneficiary: Optional[str] = None) -> Any:
        ...

    @abstractmethod
    def withdraw(self, request, signature: bytes, listing_id: int) -> Any:
        ...

    @abstractmethod
    def get_balance(self, account: str) -> int:
        ...


class BorrowService(Service, ABC):
    """Service that lends to end users against collateral."""

    SERVICE_TYPE = BORROW_SERVICE_INTERFACE_ID

    @abstractmethod
    def borrow(self, request, signature: bytes, amount: int, listing_id: int) -> Any:
        ...

    @abstractmethod
    def pay(self, request, signature: bytes, amount: int, listing_id: int) -> Any:
        ...

    @abstractmethod
    def calculate_required_collateral(self, amount: int, currency: str) -> int:
        ...
