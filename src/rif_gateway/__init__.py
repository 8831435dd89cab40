"""
RIF Gateway - registry of DeFi services with role-based access control,
a fee ledger and signature-authorized smart wallets.

Contracts run on ``Chain``, an in-process transactional state store:
every call either commits completely or leaves no trace.
"""
from .access.control import GatewayAccessControl
from .access.roles import Role
from .chain.vm import Chain, Event, Receipt
from .config import GatewaySettings, load_settings
from .deployment import GatewayDeployment, deploy_gateway
from .fees.fee_manager import FeeManager
from .services.gateway import RIFGateway
from .services.providers import ProviderInfo
from .services.service_type_manager import ServiceTypeManager
from .smartwallet.eip712 import ForwardRequest
from .smartwallet.factory import SmartWalletFactory
from .smartwallet.wallet import SmartWallet

__version__ = "0.1.0"

__all__ = [
    "Chain",
    "Event",
    "Receipt",
    "GatewaySettings",
    "load_settings",
    "Role",
    "GatewayAccessControl",
    "ServiceTypeManager",
    "RIFGateway",
    "ProviderInfo",
    "FeeManager",
    "ForwardRequest",
    "SmartWallet",
    "SmartWalletFactory",
    "GatewayDeployment",
    "deploy_gateway",
]
