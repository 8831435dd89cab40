"""Unified exception hierarchy for the RIF Gateway.

Every revert raised by a contract inherits from GatewayException, so a
caller can catch one base class and still tell the failures apart:

- error_code: Machine-readable name of the error (e.g., "DuplicatedService")
- error_args: The structured arguments the error carries, in order
- message: Human-readable error message
- details: Named view of the same arguments
- to_dict(): Convert to a serializable form

Usage:
    from rif_gateway.exceptions import DuplicatedService, GatewayException

    try:
        gateway.add_service(service.address, sender=provider)
    except DuplicatedService as e:
        assert e.error_args == (service.address,)
"""
from __future__ import annotations

from typing import Any, Optional


class GatewayException(Exception):
    """Base exception for all gateway reverts.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        details: Optional additional context
    """

    error_code: str = "GATEWAY_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}

    @property
    def error_args(self) -> tuple:
        return tuple(self.details.values())

    def to_dict(self) -> dict[str, Any]:
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = {k: str(v) for k, v in self.details.items()}
        return result


# =============================================================================
# Authorization errors
# =============================================================================

class GatewayAuthorizationError(GatewayException):
    """Caller is not allowed to perform the operation."""

    error_code = "AUTHORIZATION_ERROR"


class Unauthorized(GatewayAuthorizationError):
    error_code = "Unauthorized"

    def __init__(
        self,
        message: str = "Unauthorized",
        account: Optional[str] = None,
        role: Optional[str] = None,
    ) -> None:
        details: dict[str, Any] = {}
        if account:
            details["account"] = account
        if role:
            details["role"] = role
        super().__init__(message, details=details)


class InvalidExecutor(GatewayAuthorizationError):
    error_code = "InvalidExecutor"

    def __init__(self, executor: str) -> None:
        super().__init__(
            f"Request executor {executor} is not the caller",
            details={"executor": executor},
        )


class InvalidSigner(GatewayAuthorizationError):
    error_code = "InvalidSigner"

    def __init__(self, signer: str) -> None:
        super().__init__(
            f"{signer} is not the owner of this wallet",
            details={"signer": signer},
        )


class InvalidSignature(GatewayAuthorizationError):
    error_code = "InvalidSignature"

    def __init__(self, recovered: Optional[str]) -> None:
        super().__init__(
            f"Signature does not match request sender (recovered {recovered})",
            details={"recovered": recovered},
        )


# =============================================================================
# Validation errors
# =============================================================================

class GatewayValidationError(GatewayException):
    """Malformed or conflicting input."""

    error_code = "VALIDATION_ERROR"


class InvalidAmount(GatewayValidationError):
    error_code = "InvalidAmount"

    def __init__(self, amount: int) -> None:
        self.amount = amount
        super().__init__(f"Invalid amount: {amount}", details={"amount": amount})


class InvalidAddress(GatewayValidationError):
    error_code = "InvalidAddress"

    def __init__(self, address: Any) -> None:
        self.address = address
        super().__init__(f"Invalid address: {address!r}", details={"address": address})


class InvalidInterfaceId(GatewayValidationError):
    error_code = "InvalidInterfaceId"

    def __init__(self, interface_id: Any, reason: str) -> None:
        self.interface_id = interface_id
        super().__init__(
            f"Invalid interface id {interface_id!r}: {reason}",
            details={"interface_id": interface_id},
        )


class _AddressError(GatewayValidationError):
    """Validation error that carries the offending address."""

    template = "{address}"

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(
            self.template.format(address=address),
            details={"address": address},
        )


class InvalidService(_AddressError):
    error_code = "InvalidService"
    template = "Invalid service: {address}"


class InvalidServiceType(_AddressError):
    error_code = "InvalidServiceType"
    template = "Service type of {address} is not supported"


class InvalidProviderAddress(_AddressError):
    error_code = "InvalidProviderAddress"
    template = "Invalid provider address: {address}"


class InvalidProvider(_AddressError):
    error_code = "InvalidProvider"
    template = "Invalid provider: {address}"


class DuplicatedService(_AddressError):
    error_code = "DuplicatedService"
    template = "Service {address} is already registered"


class NewOwnerIsCurrentOwner(GatewayValidationError):
    error_code = "NewOwnerIsCurrentOwner"

    def __init__(self) -> None:
        super().__init__("NewOwnerIsCurrentOwner()")


# =============================================================================
# State precondition errors
# =============================================================================

class GatewayStateError(GatewayException):
    """The state required by the operation does not hold."""

    error_code = "STATE_ERROR"


class ValidationNotRequested(GatewayStateError):
    error_code = "ValidationNotRequested"

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(
            f"Provider {address} has not requested validation",
            details={"address": address},
        )


class InsufficientFunds(GatewayStateError):
    error_code = "InsufficientFunds"

    def __init__(self) -> None:
        super().__init__("InsufficientFunds()")


class NoPendingFees(GatewayStateError):
    error_code = "NoPendingFees"

    def __init__(self) -> None:
        super().__init__("NoPendingFees()")


class InvalidNonce(GatewayStateError):
    error_code = "InvalidNonce"

    def __init__(self, nonce: int, details: Optional[dict[str, Any]] = None) -> None:
        self.nonce = nonce
        super().__init__(
            f"Invalid nonce: {nonce}",
            details=details or {"nonce": nonce},
        )


class InvalidBlockForNonce(InvalidNonce):
    """A request carrying an already consumed nonce was replayed."""

    error_code = "InvalidBlockForNonce"

    def __init__(self, nonce: int, current_nonce: int) -> None:
        self.current_nonce = current_nonce
        super().__init__(
            nonce,
            details={"nonce": nonce, "current_nonce": current_nonce},
        )
        self.message = f"Nonce {nonce} already used, current nonce is {current_nonce}"
        self.args = (self.message,)


class AlreadyInitialized(GatewayStateError):
    error_code = "AlreadyInitialized"

    def __init__(self) -> None:
        super().__init__("Initializable: contract is already initialized")


# =============================================================================
# External call failures
# =============================================================================

class ExternalCallError(GatewayException):
    """A call out of the contract failed."""

    error_code = "EXTERNAL_CALL_ERROR"


class RBTCTransferFailed(ExternalCallError):
    error_code = "RBTCTransferFailed"

    def __init__(self) -> None:
        super().__init__("RBTCTransferFailed()")


class UnexpectedError(ExternalCallError):
    """The target of a forwarded call reverted."""

    error_code = "UnexpectedError"

    def __init__(self, target: str, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(
            f"Call to {target} reverted: {reason}",
            details={"target": target, "reason": reason},
        )


# =============================================================================
# Chain errors
# =============================================================================

class ChainError(GatewayException):
    """The state store rejected a deployment, call or transfer."""

    error_code = "CHAIN_ERROR"


class ContractAlreadyDeployed(ChainError):
    error_code = "ContractAlreadyDeployed"

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(
            f"Address {address} already holds a contract",
            details={"address": address},
        )


class ContractNotFound(ChainError):
    error_code = "ContractNotFound"

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(
            f"No contract deployed at {address}",
            details={"address": address},
        )


class InsufficientBalance(ChainError):
    error_code = "InsufficientBalance"

    def __init__(self, account: str, required: int, available: int) -> None:
        super().__init__(
            f"Insufficient balance in {account}: required {required}, available {available}",
            details={"account": account, "required": required, "available": available},
        )


class UpgradeError(ChainError):
    error_code = "UpgradeError"


class NoActiveCall(ChainError):
    error_code = "NoActiveCall"

    def __init__(self) -> None:
        super().__init__("msg is only available inside an external call")
