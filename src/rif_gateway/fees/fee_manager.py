"""
Fee ledger.

Two kinds of bookkeeping live here:

- balances: native currency credited to a beneficiary and withdrawable by it.
  Funded directly with fund_beneficiary or by settling debts.
- debts: consumption fees the gateway charges to services, owed both to
  the beneficiary named in the charge and to the gateway fees owner.
  Debts are settled with pay / pay_in_behalf_of, which turns the paid
  value into balances.

The gateway fees owner is the fee manager's own address; its balance is
withdrawn by a FINANCIAL_OPERATOR.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from ..chain.contract import Contract, external
from ..chain.ownable import Ownable
from ..chain.primitives import ZERO_ADDRESS, is_zero_address, normalize_address
from ..chain.proxy import UUPSUpgradeable
from ..exceptions import (
    InsufficientFunds,
    InvalidAddress,
    InvalidAmount,
    NoPendingFees,
    RBTCTransferFailed,
    Unauthorized,
)

logger = logging.getLogger(__name__)


class FeeManager(UUPSUpgradeable, Ownable, Contract):
    """Per-beneficiary credit balances and per-service fee debts."""

    def __init__(self, chain, address: str):
        super().__init__(chain, address)
        self._disable_initializers()

    @external
    def initialize(self, access_control: str) -> None:
        self._begin_initialization()
        self._init_ownable(self.msg.sender)
        self._access_control = normalize_address(access_control)
        self._rif_gateway: Optional[str] = None
        self._balances: Dict[str, int] = {}
        self._debts: Dict[str, Dict[str, int]] = {}

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_gateway_fees_owner(self) -> str:
        return self.address

    def get_rif_gateway(self) -> str:
        return self._rif_gateway or ZERO_ADDRESS

    @external
    def set_rif_gateway(self, rif_gateway: str) -> None:
        access_control = self.chain.get_contract(self._access_control)
        if not access_control.is_financial_owner(self.msg.sender):
            raise Unauthorized("Not FINANCIAL_OWNER role", account=self.msg.sender)
        self._rif_gateway = normalize_address(rif_gateway)
        self.emit("RIFGatewayChanged", self._rif_gateway)

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def get_balance(self, beneficiary: str) -> int:
        return self._balances.get(normalize_address(beneficiary), 0)

    def get_total_balance(self) -> int:
        return sum(self._balances.values())

    @external
    def fund_beneficiary(self, beneficiary: str) -> None:
        amount = self.msg.value
        if amount <= 0:
            raise InvalidAmount(amount)
        beneficiary = normalize_address(beneficiary)
        if is_zero_address(beneficiary):
            raise InvalidAddress(beneficiary)
        self._credit(beneficiary, amount)
        self.emit("Deposit", beneficiary, amount)

    @external
    def withdraw(self, amount: int, beneficiary: Optional[str] = None) -> None:
        sender = self.msg.sender
        beneficiary = normalize_address(beneficiary) if beneficiary else sender

        if beneficiary == self.get_gateway_fees_owner():
            access_control = self.chain.get_contract(self._access_control)
            if not access_control.is_financial_operator(sender):
                raise Unauthorized("Not FINANCIAL_OPERATOR role", account=sender)
        elif beneficiary != sender:
            raise Unauthorized("Only the beneficiary can withdraw its funds", account=sender)

        if amount <= 0:
            raise InvalidAmount(amount)
        balance = self._balances.get(beneficiary, 0)
        if amount > balance:
            raise InsufficientFunds()

        self._balances[beneficiary] = balance - amount
        if not self.send_value(sender, amount):
            raise RBTCTransferFailed()
        self.emit("Withdraw", beneficiary, amount)
        logger.info(f"{sender} withdrew {amount} wei from the balance of {beneficiary}")

    # ------------------------------------------------------------------
    # Debts
    # ------------------------------------------------------------------

    def get_debt_balance(self, debtor: str) -> int:
        return sum(self._debts.get(normalize_address(debtor), {}).values())

    def get_debt_balance_for(self, debtor: str, beneficiary: str) -> int:
        return self._debts.get(normalize_address(debtor), {}).get(normalize_address(beneficiary), 0)

    @external
    def charge_fee(self, debtor: str, beneficiary: str, amount: int) -> None:
        if self._rif_gateway is None or self.msg.sender != self._rif_gateway:
            raise Unauthorized("Only the RIF Gateway can charge fees", account=self.msg.sender)
        if amount <= 0:
            raise InvalidAmount(amount)
        debtor = normalize_address(debtor)
        beneficiary = normalize_address(beneficiary)

        debts = self._debts.setdefault(debtor, {})
        debts[beneficiary] = debts.get(beneficiary, 0) + amount
        fees_owner = self.get_gateway_fees_owner()
        debts[fees_owner] = debts.get(fees_owner, 0) + amount
        self.emit("ServiceConsumptionFee", debtor, amount, beneficiary, amount)
        logger.info(f"Charged {amount} wei consumption fee to {debtor} for {beneficiary}")

    @external
    def pay(self) -> None:
        self._settle(self.msg.sender, self.msg.value)

    @external
    def pay_in_behalf_of(self, debtor: str) -> None:
        self._settle(normalize_address(debtor), self.msg.value)

    def _settle(self, debtor: str, value: int) -> None:
        if value <= 0:
            raise InvalidAmount(value)
        debts = self._debts.get(debtor, {})
        total = sum(debts.values())
        if total == 0:
            raise NoPendingFees()
        if value > total:
            raise InvalidAmount(value)

        remaining = value
        for creditor, owed in list(debts.items()):
            if remaining == 0:
                break
            paid = min(owed, remaining)
            if paid == owed:
                del debts[creditor]
            else:
                debts[creditor] = owed - paid
            self._credit(creditor, paid)
            remaining -= paid
            self.emit("FeePayment", debtor, creditor, paid)
        if not debts:
            self._debts.pop(debtor, None)

    def _credit(self, beneficiary: str, amount: int) -> None:
        self._balances[beneficiary] = self._balances.get(beneficiary, 0) + amount

    def _authorize_upgrade(self, new_implementation: str) -> None:
        self._only_owner()
