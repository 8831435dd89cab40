"""
ERC-1967 proxy with UUPS upgrades.

The proxy owns the storage; the implementation only contributes code.
Any attribute the proxy does not have itself is looked up on the
*class* of the current implementation and bound to the proxy, which is
what a delegatecall does: the logic runs against the proxy's state with
the caller's msg context.

Logic classes reached through a proxy must not rely on ``super()`` or
``isinstance(self, ...)``, since ``self`` is the proxy.
"""
from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple, Type, TypeVar, cast

from ..exceptions import AlreadyInitialized, UpgradeError
from .contract import Contract, external
from .primitives import normalize_address

logger = logging.getLogger(__name__)

L = TypeVar("L")

# bytes32(uint256(keccak256("eip1967.proxy.implementation")) - 1)
IMPLEMENTATION_SLOT = "0x360894a13ba1a3210667c828492db98dca3e2076cc3735a920a3ca505d382bbc"


class ERC1967Proxy(Contract):
    """Storage-holding proxy delegating code lookups to its implementation."""

    def __init__(
        self,
        chain,
        address: str,
        implementation: str,
        init_call: Optional[Tuple[str, tuple]] = None,
    ):
        super().__init__(chain, address)
        implementation = normalize_address(implementation)
        if not chain.is_contract(implementation):
            raise UpgradeError("ERC1967: new implementation is not a contract")
        self._implementation = implementation
        self.emit("Upgraded", implementation)
        if init_call is not None:
            function, args = init_call
            getattr(self, function)(*args, sender=self.msg.sender)

    def get_implementation(self) -> str:
        return self._implementation

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails
        if name.startswith("__"):
            raise AttributeError(name)
        implementation = self.__dict__.get("_implementation")
        chain = self.__dict__.get("chain")
        if implementation is None or chain is None:
            raise AttributeError(name)
        logic_cls = type(chain.get_contract(implementation))
        try:
            attr = inspect.getattr_static(logic_cls, name)
        except AttributeError:
            raise AttributeError(
                f"{logic_cls.__name__} at {implementation} has no attribute {name!r}"
            ) from None
        if hasattr(attr, "__get__"):
            return attr.__get__(self, type(self))
        return attr

    def __repr__(self) -> str:
        return f"ERC1967Proxy({self.address} -> {self.__dict__.get('_implementation')})"


class Initializable:
    """One-shot initializer guard for proxied logic."""

    def _disable_initializers(self) -> None:
        self._initialized = True

    def _begin_initialization(self) -> None:
        if getattr(self, "_initialized", False):
            raise AlreadyInitialized()
        self._initialized = True
        self.emit("Initialized", 1)


class UUPSUpgradeable(Initializable, ABC):
    """Upgrade logic that lives in the implementation, not the proxy.

    Hosts implement ``_authorize_upgrade`` to decide who may upgrade.
    """

    def proxiable_uuid(self) -> str:
        if self._is_proxied():
            raise UpgradeError("UUPSUpgradeable: must not be called through delegatecall")
        return IMPLEMENTATION_SLOT

    def _is_proxied(self) -> bool:
        return "_implementation" in vars(self)

    @abstractmethod
    def _authorize_upgrade(self, new_implementation: str) -> None:
        """Raise unless msg.sender may upgrade to new_implementation."""

    @external
    def upgrade_to(self, new_implementation: str) -> None:
        if not self._is_proxied():
            raise UpgradeError("Function must be called through delegatecall")
        self._authorize_upgrade(new_implementation)
        new_implementation = normalize_address(new_implementation)

        candidate = self.chain.get_contract(new_implementation)
        proxiable_uuid = getattr(candidate, "proxiable_uuid", None)
        if proxiable_uuid is None:
            raise UpgradeError("ERC1967Upgrade: new implementation is not UUPS")
        if proxiable_uuid() != IMPLEMENTATION_SLOT:
            raise UpgradeError("ERC1967Upgrade: unsupported proxiableUUID")

        previous = self._implementation
        self._implementation = new_implementation
        self.emit("Upgraded", new_implementation)
        logger.info(f"Proxy {self.address} upgraded from {previous} to {new_implementation}")


def deploy_proxy(
    chain,
    logic_cls: Type[L],
    *init_args: Any,
    sender: str,
    initializer: str = "initialize",
) -> L:
    """Deploy logic_cls behind a fresh ERC1967Proxy and initialize it.

    The returned proxy is typed as the logic class for the caller's
    convenience; attribute access is delegated at runtime.
    """
    implementation = chain.deploy(logic_cls, sender=sender)
    proxy = chain.deploy(
        ERC1967Proxy,
        implementation.address,
        (initializer, init_args),
        sender=sender,
    )
    logger.info(f"{logic_cls.__name__} proxy deployed at {proxy.address}")
    return cast(L, proxy)
