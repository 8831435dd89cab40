"""
EIP-712 typed data for smart wallet forward requests.

A ForwardRequest says "``from`` allows ``executor`` to act through my
wallet once, at wallet nonce ``nonce``". The signature is bound to one
wallet on one chain through the domain (name, version, chainId,
verifyingContract = wallet address).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_utils import keccak, to_bytes, to_checksum_address

logger = logging.getLogger(__name__)

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

FORWARD_REQUEST_TYPE = {
    "ForwardRequest": [
        {"name": "from", "type": "address"},
        {"name": "nonce", "type": "uint256"},
        {"name": "executor", "type": "address"},
    ]
}

Signature = Union[bytes, str]


@dataclass(frozen=True)
class ForwardRequest:
    """Transient authorization message signed off-chain by ``from_address``."""
    from_address: str
    nonce: int
    executor: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": to_checksum_address(self.from_address),
            "nonce": self.nonce,
            "executor": to_checksum_address(self.executor),
        }


def build_domain(chain_id: int, verifying_contract: str, name: str, version: str) -> Dict[str, Any]:
    return {
        "name": name,
        "version": version,
        "chainId": chain_id,
        "verifyingContract": to_checksum_address(verifying_contract),
    }


def build_typed_data(request: ForwardRequest, domain: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "types": {
            "EIP712Domain": EIP712_DOMAIN_TYPE,
            **FORWARD_REQUEST_TYPE,
        },
        "primaryType": "ForwardRequest",
        "domain": domain,
        "message": request.to_dict(),
    }


def _signable(request: ForwardRequest, domain: Dict[str, Any]) -> SignableMessage:
    return encode_typed_data(full_message=build_typed_data(request, domain))


def hash_forward_request(request: ForwardRequest, domain: Dict[str, Any]) -> bytes:
    """The 32-byte digest that gets signed: keccak256(0x1901 ++ domainSeparator ++ structHash)."""
    signable = _signable(request, domain)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def sign_forward_request(private_key: str, request: ForwardRequest, domain: Dict[str, Any]) -> bytes:
    signed = Account.sign_message(_signable(request, domain), private_key=private_key)
    logger.debug(
        f"Signed ForwardRequest: from={request.from_address} executor={request.executor} "
        f"nonce={request.nonce}"
    )
    return bytes(signed.signature)


def recover_forward_request_signer(
    request: ForwardRequest,
    signature: Signature,
    domain: Dict[str, Any],
) -> Optional[str]:
    """Address that produced signature, or None if it cannot be recovered."""
    if isinstance(signature, str):
        signature = to_bytes(hexstr=signature)
    try:
        return Account.recover_message(_signable(request, domain), signature=signature)
    except Exception as e:
        logger.warning(f"Signature recovery failed: {e}")
        return None
