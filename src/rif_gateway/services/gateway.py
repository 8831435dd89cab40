"""RIF Gateway: upgradeable registry of providers and their services."""
from __future__ import annotations

import logging

from ..chain.contract import Contract, external
from ..chain.ownable import Ownable
from ..chain.primitives import normalize_address
from ..chain.proxy import UUPSUpgradeable
from ..exceptions import InvalidAmount, InvalidService, Unauthorized
from .providers import Providers

logger = logging.getLogger(__name__)


class RIFGateway(UUPSUpgradeable, Ownable, Providers, Contract):
    """Entry point providers register services with.

    Deployed behind an ERC1967Proxy; state is set up by ``initialize``.
    """

    def __init__(self, chain, address: str):
        super().__init__(chain, address)
        self._disable_initializers()

    @external
    def initialize(self, service_type_manager: str, access_control: str, fee_manager: str) -> None:
        self._begin_initialization()
        self._init_ownable(self.msg.sender)
        self._init_providers()
        self._service_type_manager = normalize_address(service_type_manager)
        self._access_control = normalize_address(access_control)
        self._fee_manager = normalize_address(fee_manager)
        self._consumption_fee = self.chain.settings.consumption_fee_wei

    def get_service_type_manager(self) -> str:
        return self._service_type_manager

    def get_access_control(self) -> str:
        return self._access_control

    def get_fee_manager(self) -> str:
        return self._fee_manager

    def get_consumption_fee(self) -> int:
        return self._consumption_fee

    @external
    def set_consumption_fee(self, fee: int) -> None:
        self._only_owner()
        if fee < 0:
            raise InvalidAmount(fee)
        self._consumption_fee = fee
        self.emit("ConsumptionFeeChanged", fee)

    @external
    def charge_fee(self, beneficiary: str) -> None:
        """Record a consumption fee owed by the calling service."""
        service = self.msg.sender
        if not self.is_registered_service(service):
            raise InvalidService(service)
        if self._consumption_fee == 0:
            return
        fee_manager = self.chain.get_contract(self._fee_manager)
        fee_manager.charge_fee(service, beneficiary, self._consumption_fee, sender=self.address)

    def _check_service_type(self, service_address: str) -> bool:
        manager = self.chain.get_contract(self._service_type_manager)
        return manager.supports_service(service_address)

    def _authorize_validation(self) -> None:
        access_control = self.chain.get_contract(self._access_control)
        sender = self.msg.sender
        if not (access_control.is_owner(sender) or access_control.is_high_level_operator(sender)):
            raise Unauthorized("Not OWNER or HIGH_LEVEL_OPERATOR role", account=sender)

    def _authorize_upgrade(self, new_implementation: str) -> None:
        self._only_owner()
