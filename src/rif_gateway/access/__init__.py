from .control import GatewayAccessControl
from .roles import ROLE_ADMINS, Role

__all__ = ["GatewayAccessControl", "Role", "ROLE_ADMINS"]
