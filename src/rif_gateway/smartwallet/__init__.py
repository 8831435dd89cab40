"""Smart wallets and the signed forward-request protocol."""
from .eip712 import ForwardRequest, hash_forward_request, recover_forward_request_signer, sign_forward_request
from .factory import SmartWalletFactory
from .signer import sign_transaction_for_executor
from .wallet import SmartWallet

__all__ = [
    "ForwardRequest",
    "SmartWallet",
    "SmartWalletFactory",
    "hash_forward_request",
    "sign_forward_request",
    "recover_forward_request_signer",
    "sign_transaction_for_executor",
]
