"""Per-owner smart wallet that forwards signed, nonce-protected requests."""
from __future__ import annotations

import logging
from typing import Any, Dict

from ..chain.contract import Contract, external
from ..chain.primitives import normalize_address
from ..exceptions import (
    InvalidBlockForNonce,
    InvalidExecutor,
    InvalidNonce,
    InvalidSignature,
    InvalidSigner,
    UnexpectedError,
)
from .eip712 import ForwardRequest, Signature, build_domain, recover_forward_request_signer

logger = logging.getLogger(__name__)


class SmartWallet(Contract):
    """Wallet state is one counter: the nonce the next request must carry.

    A request is accepted only if it names the caller as executor, is
    signed by the wallet owner for this wallet and chain, and carries
    exactly the current nonce. Acceptance advances the nonce by one.
    """

    def __init__(self, chain, address: str, owner: str):
        super().__init__(chain, address)
        self._owner = normalize_address(owner)
        self._nonce = 0

    def owner(self) -> str:
        return self._owner

    def nonce(self) -> int:
        return self._nonce

    def eip712_domain(self) -> Dict[str, Any]:
        settings = self.chain.settings
        return build_domain(
            self.chain.chain_id,
            self.address,
            settings.eip712_domain_name,
            settings.eip712_domain_version,
        )

    @external
    def receive(self) -> None:
        self.emit("Received", self.msg.sender, self.msg.value)

    @external
    def verify(self, request: ForwardRequest, signature: Signature) -> bool:
        self._verify(request, signature)
        return True

    @external
    def execute(
        self,
        request: ForwardRequest,
        signature: Signature,
        to: str,
        function: str,
        *args: Any,
    ) -> Any:
        """Verify request, consume its nonce, then call ``to.function(*args)`` as this wallet.

        msg.value sent to execute is forwarded to the target. If the target
        reverts, the nonce increment is rolled back with everything else.
        """
        self._verify(request, signature)
        if request.nonce < self._nonce:
            raise InvalidBlockForNonce(request.nonce, self._nonce)
        if request.nonce > self._nonce:
            raise InvalidNonce(request.nonce)
        self._nonce += 1

        to = normalize_address(to)
        try:
            target = self.chain.get_contract(to)
            method = getattr(target, function, None)
            if method is None or not getattr(method, "is_external", False):
                raise UnexpectedError(to, f"{function} is not an external function")
            result = method(*args, sender=self.address, value=self.msg.value)
        except UnexpectedError:
            raise
        except Exception as e:
            raise UnexpectedError(to, str(e)) from e

        self.emit("Executed", request.from_address, request.nonce, to, function)
        logger.info(f"Wallet {self.address} executed {function} on {to} at nonce {request.nonce}")
        return result

    def _verify(self, request: ForwardRequest, signature: Signature) -> None:
        executor = normalize_address(request.executor)
        if executor != self.msg.sender:
            raise InvalidExecutor(executor)
        signer = normalize_address(request.from_address)
        if signer != self._owner:
            raise InvalidSigner(signer)
        recovered = recover_forward_request_signer(request, signature, self.eip712_domain())
        if recovered is None or normalize_address(recovered) != signer:
            raise InvalidSignature(recovered)
