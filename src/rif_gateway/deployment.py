"""Deploy and wire the full gateway suite on a chain."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from .access.control import GatewayAccessControl
from .chain.proxy import deploy_proxy
from .chain.vm import Chain
from .fees.fee_manager import FeeManager
from .services.gateway import RIFGateway
from .services.interfaces import BORROW_SERVICE_INTERFACE_ID, LENDING_SERVICE_INTERFACE_ID
from .services.service_type_manager import ServiceTypeManager
from .smartwallet.factory import SmartWalletFactory

logger = logging.getLogger(__name__)


@dataclass
class GatewayDeployment:
    """Handles to every deployed contract. Proxied contracts are proxies."""
    access_control: GatewayAccessControl
    service_type_manager: ServiceTypeManager
    fee_manager: FeeManager
    gateway: RIFGateway
    smart_wallet_factory: SmartWalletFactory


def deploy_gateway(chain: Chain, deployer: str) -> GatewayDeployment:
    """Deploy access control, service types, fee manager, gateway and wallet factory.

    The deployer ends up as OWNER of access control and owner of both
    proxies. The fee manager is pointed at the gateway; if the deployer
    was not already FINANCIAL_OWNER, that role is granted for the link
    and revoked again afterwards.
    """
    access_control = chain.deploy(GatewayAccessControl, sender=deployer)

    service_type_manager = chain.deploy(ServiceTypeManager, access_control.address, sender=deployer)
    service_type_manager.add_service_type("Lending", LENDING_SERVICE_INTERFACE_ID, sender=deployer)
    service_type_manager.add_service_type("Borrowing", BORROW_SERVICE_INTERFACE_ID, sender=deployer)

    fee_manager = deploy_proxy(chain, FeeManager, access_control.address, sender=deployer)
    gateway = deploy_proxy(
        chain,
        RIFGateway,
        service_type_manager.address,
        access_control.address,
        fee_manager.address,
        sender=deployer,
    )

    temporary_financial_owner = not access_control.is_financial_owner(deployer)
    if temporary_financial_owner:
        access_control.add_financial_owner(deployer, sender=deployer)
    fee_manager.set_rif_gateway(gateway.address, sender=deployer)
    if temporary_financial_owner:
        access_control.remove_financial_owner(deployer, sender=deployer)

    smart_wallet_factory = chain.deploy(SmartWalletFactory, sender=deployer)

    logger.info(
        f"Gateway suite deployed: gateway={gateway.address} fee_manager={fee_manager.address} "
        f"access_control={access_control.address} factory={smart_wallet_factory.address}"
    )
    return GatewayDeployment(
        access_control=access_control,
        service_type_manager=service_type_manager,
        fee_manager=fee_manager,
        gateway=gateway,
        smart_wallet_factory=smart_wallet_factory,
    )
