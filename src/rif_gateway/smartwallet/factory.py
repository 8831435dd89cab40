"""Deterministic smart wallet deployment (CREATE2)."""
from __future__ import annotations

import logging

from eth_utils import keccak

from ..chain.contract import Contract, external
from ..chain.primitives import (
    abi_encode_address,
    compute_create2_address,
    is_zero_address,
    normalize_address,
    packed_salt,
)
from ..exceptions import InvalidAddress
from .wallet import SmartWallet

logger = logging.getLogger(__name__)


class SmartWalletFactory(Contract):
    """Deploys one SmartWallet per owner at a precomputable address."""

    def __init__(self, chain, address: str):
        super().__init__(chain, address)
        self._salt_literal = chain.settings.smart_wallet_salt

    def get_salt(self, owner: str) -> bytes:
        """keccak256(abi.encodePacked(owner, factory, salt_literal))"""
        return packed_salt(
            ("address", normalize_address(owner)),
            ("address", self.address),
            ("string", self._salt_literal),
        )

    def get_init_code_hash(self, owner: str) -> bytes:
        return keccak(SmartWallet.creation_code() + abi_encode_address(owner))

    def get_smart_wallet_address(self, owner: str) -> str:
        return compute_create2_address(self.address, self.get_salt(owner), self.get_init_code_hash(owner))

    @external
    def create_user_smart_wallet(self, owner: str) -> str:
        owner = normalize_address(owner)
        if is_zero_address(owner):
            raise InvalidAddress(owner)
        salt = self.get_salt(owner)
        wallet = self.chain.deploy_deterministic(
            SmartWallet,
            owner,
            sender=self.address,
            salt=salt,
            constructor_data=abi_encode_address(owner),
        )
        self.emit("Deployed", wallet.address, "0x" + salt.hex())
        logger.info(f"Smart wallet for {owner} deployed at {wallet.address}")
        return wallet.address
