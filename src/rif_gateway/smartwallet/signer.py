"""Client-side helper that prepares signed forward requests."""
from __future__ import annotations

import logging
from typing import Optional, Tuple

from eth_account import Account

from ..chain.primitives import normalize_address
from .eip712 import ForwardRequest, build_domain, sign_forward_request

logger = logging.getLogger(__name__)


def sign_transaction_for_executor(
    chain,
    factory,
    private_key: str,
    executor: str,
    nonce: Optional[int] = None,
) -> Tuple[ForwardRequest, bytes]:
    """Sign a request letting executor act through the key owner's wallet.

    The wallet address is predicted through the factory, so this works
    before the wallet exists. Without an explicit nonce the wallet's
    current nonce is used (0 for an undeployed wallet).
    """
    account = Account.from_key(private_key)
    wallet_address = factory.get_smart_wallet_address(account.address)

    if nonce is None:
        nonce = chain.get_contract(wallet_address).nonce() if chain.is_contract(wallet_address) else 0

    domain = build_domain(
        chain.chain_id,
        wallet_address,
        chain.settings.eip712_domain_name,
        chain.settings.eip712_domain_version,
    )
    request = ForwardRequest(from_address=account.address, nonce=nonce, executor=normalize_address(executor))
    signature = sign_forward_request(private_key, request, domain)
    logger.debug(f"Prepared request for wallet {wallet_address} at nonce {nonce}")
    return request, signature
