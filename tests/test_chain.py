"""Tests for the transactional runtime: atomicity, savepoints, value transfers."""
from __future__ import annotations

import pytest
from eth_utils import keccak

from mock_contracts import Counter, NonPayable, RevertingReceiver
from rif_gateway.chain.contract import Contract, external
from rif_gateway.chain.primitives import compute_create2_address, compute_create_address
from rif_gateway.exceptions import (
    ChainError,
    ContractAlreadyDeployed,
    ContractNotFound,
    GatewayException,
    InsufficientBalance,
    NoActiveCall,
)
from rif_gateway.logging_config import get_tx_hash


class Caller(Contract):
    """Calls a Counter and optionally swallows its revert."""

    @external
    def call_and_catch(self, counter):
        target = self.chain.get_contract(counter)
        target.increment(sender=self.address)
        try:
            target.fail(sender=self.address)
        except GatewayException:
            pass
        return target.peek()

    @external
    def call_then_fail(self, counter):
        self.chain.get_contract(counter).increment(sender=self.address)
        raise GatewayException("Caller: failing after nested call")


class TxHashRecorder(Contract):
    @external
    def record(self):
        self.seen = get_tx_hash()


class TestDeploy:
    """Test contract deployment."""

    def test_create_address_follows_deployer_nonce(self, chain, owner):
        """Should place consecutive deployments at CREATE addresses."""
        first = chain.deploy(Counter, sender=owner.address)
        second = chain.deploy(Counter, sender=owner.address)

        assert first.address == compute_create_address(owner.address, 0)
        assert second.address == compute_create_address(owner.address, 1)
        assert chain.is_contract(first.address)

    def test_deterministic_collision(self, chain, owner):
        """Should refuse a second CREATE2 deployment at the same address."""
        salt = keccak(text="salt")
        counter = chain.deploy_deterministic(Counter, sender=owner.address, salt=salt)
        expected = compute_create2_address(owner.address, salt, keccak(Counter.creation_code()))
        assert counter.address == expected

        with pytest.raises(ContractAlreadyDeployed) as exc:
            chain.deploy_deterministic(Counter, sender=owner.address, salt=salt)
        assert exc.value.address == expected

    def test_get_contract_unknown(self, chain, alice):
        """Should raise ContractNotFound for an empty address."""
        with pytest.raises(ContractNotFound):
            chain.get_contract(alice.address)


class TestAtomicity:
    """Test rollback of failed calls."""

    def test_revert_restores_storage(self, chain, owner):
        """Should leave no trace of a reverted call."""
        counter = chain.deploy(Counter, sender=owner.address)
        counter.increment(sender=owner.address)

        with pytest.raises(GatewayException):
            counter.fail(sender=owner.address)

        assert counter.peek() == 1
        assert chain.last_receipt.status == "reverted"
        assert chain.last_receipt.events == ()

    def test_revert_refunds_value(self, chain, owner):
        """Should give value back when the call reverts."""
        counter = chain.deploy(Counter, sender=owner.address)
        before = chain.get_balance(owner.address)

        with pytest.raises(GatewayException):
            counter.fail(sender=owner.address, value=500)

        assert chain.get_balance(owner.address) == before
        assert chain.get_balance(counter.address) == 0

    def test_value_moves_on_success(self, chain, owner):
        """Should move msg.value into the contract."""
        counter = chain.deploy(Counter, sender=owner.address)
        before = chain.get_balance(owner.address)

        counter.increment(sender=owner.address, value=700)

        assert chain.get_balance(owner.address) == before - 700
        assert chain.get_balance(counter.address) == 700
        assert counter.received == 700

    def test_insufficient_balance(self, chain, owner, alice):
        """Should refuse a call carrying more value than the sender holds."""
        counter = chain.deploy(Counter, sender=owner.address)
        with pytest.raises(InsufficientBalance):
            counter.increment(sender=alice.address, value=chain.get_balance(alice.address) + 1)
        assert counter.peek() == 0

    def test_caught_nested_revert_only_undoes_nested_frame(self, chain, owner):
        """Should keep the caller's effects when it catches a nested revert."""
        counter = chain.deploy(Counter, sender=owner.address)
        caller = chain.deploy(Caller, sender=owner.address)

        assert caller.call_and_catch(counter.address, sender=owner.address) == 1
        assert counter.peek() == 1
        assert counter.last_caller == caller.address

    def test_outer_revert_undoes_nested_success(self, chain, owner):
        """Should roll back completed nested calls when the outer call fails."""
        counter = chain.deploy(Counter, sender=owner.address)
        caller = chain.deploy(Caller, sender=owner.address)

        with pytest.raises(GatewayException):
            caller.call_then_fail(counter.address, sender=owner.address)

        assert counter.peek() == 0
        assert counter.last_caller is None

    def test_reverted_deployment_is_removed(self, chain, owner):
        """Should drop the contract and the nonce bump of a failed constructor."""
        class Exploding(Contract):
            def __init__(self, chain, address):
                super().__init__(chain, address)
                raise GatewayException("constructor failed")

        address = compute_create_address(owner.address, 0)
        with pytest.raises(GatewayException):
            chain.deploy(Exploding, sender=owner.address)

        assert not chain.is_contract(address)
        # the nonce was not consumed either
        assert chain.deploy(Counter, sender=owner.address).address == address


class TestReceipts:
    """Test blocks, receipts and events."""

    def test_one_block_per_transaction(self, chain, owner):
        """Should mine one block per top-level call."""
        counter = chain.deploy(Counter, sender=owner.address)
        start = chain.block_number

        counter.increment(sender=owner.address)
        counter.increment(sender=owner.address)

        assert chain.block_number == start + 2
        assert chain.last_receipt.succeeded
        assert chain.last_receipt.function == "increment"

    def test_nested_calls_share_a_receipt(self, chain, owner):
        """Should record nested calls in the outer call's receipt."""
        counter = chain.deploy(Counter, sender=owner.address)
        caller = chain.deploy(Caller, sender=owner.address)
        receipts_before = len(chain.receipts)

        caller.call_and_catch(counter.address, sender=owner.address)

        assert len(chain.receipts) == receipts_before + 1

    def test_emit_outside_call(self, chain, owner):
        """Should refuse to emit outside a call."""
        counter = chain.deploy(Counter, sender=owner.address)
        with pytest.raises(NoActiveCall):
            counter.emit("Nope")

    def test_tx_hash_in_logging_context(self, chain, owner):
        """Should expose the tx hash to code running in the call."""
        recorder = chain.deploy(TxHashRecorder, sender=owner.address)
        recorder.record(sender=owner.address)

        assert recorder.seen == chain.last_receipt.tx_hash
        assert get_tx_hash() is None


class TestSendValue:
    """Test native value transfers."""

    def test_to_eoa(self, chain, owner, alice):
        """Should credit an externally owned account."""
        counter = chain.deploy(Counter, sender=owner.address)
        counter.increment(sender=owner.address, value=1000)
        before = chain.get_balance(alice.address)

        assert chain.send_value(counter.address, alice.address, 400)
        assert chain.get_balance(alice.address) == before + 400
        assert chain.get_balance(counter.address) == 600

    def test_reports_failure(self, chain, owner):
        """Should return False without side effects when value cannot be delivered."""
        counter = chain.deploy(Counter, sender=owner.address)
        counter.increment(sender=owner.address, value=1000)
        reverting = chain.deploy(RevertingReceiver, sender=owner.address)
        non_payable = chain.deploy(NonPayable, sender=owner.address)

        assert not chain.send_value(counter.address, reverting.address, 10)
        assert not chain.send_value(counter.address, non_payable.address, 10)
        assert not chain.send_value(counter.address, owner.address, 10_000)
        assert chain.get_balance(counter.address) == 1000

    def test_transfer_to_contract_without_receive(self, chain, owner):
        """Should raise when a plain transfer hits a contract without receive."""
        non_payable = chain.deploy(NonPayable, sender=owner.address)
        with pytest.raises(ChainError):
            chain.transfer(non_payable.address, sender=owner.address, value=1)

    def test_transfer_between_accounts(self, chain, alice, bob):
        """Should move value between accounts."""
        before = chain.get_balance(bob.address)
        chain.transfer(bob.address, sender=alice.address, value=5)
        assert chain.get_balance(bob.address) == before + 5
