"""Full flows across gateway, services, smart wallets and the fee ledger."""
from __future__ import annotations

import pytest

from mock_contracts import DummyBorrowService, DummyLendingService
from rif_gateway.exceptions import (
    InvalidAmount,
    InvalidBlockForNonce,
    InvalidExecutor,
    InvalidService,
    Unauthorized,
)
from rif_gateway.services.service import InvalidListing, ServiceListing
from rif_gateway.smartwallet import sign_transaction_for_executor

ONE_GWEI = 10**9
DEPOSIT = 10**16


@pytest.fixture
def lending_service(chain, gateway, factory, alice):
    """Registered lending service owned by alice with one enabled listing."""
    service = chain.deploy(
        DummyLendingService, gateway.address, factory.address, "Tropykus", sender=alice.address
    )
    service.add_listing(ServiceListing(id=0, min_amount=1, max_amount=10**18, name="rbtc"), sender=alice.address)
    gateway.add_service(service.address, sender=alice.address)
    return service


class TestFinancialRoles:
    """Test the financial roles of a deployed suite."""

    def test_owner_to_financial_operator_chain(self, chain, access_control, fee_manager, owner, alice, bob):
        """OWNER names a FINANCIAL_OWNER, who names a FINANCIAL_OPERATOR that withdraws fees."""
        access_control.add_financial_owner(alice.address, sender=owner.address)
        access_control.add_financial_operator(bob.address, sender=alice.address)

        fees_owner = fee_manager.get_gateway_fees_owner()
        fee_manager.fund_beneficiary(fees_owner, sender=owner.address, value=5 * ONE_GWEI)
        before = chain.get_balance(bob.address)

        fee_manager.withdraw(5 * ONE_GWEI, fees_owner, sender=bob.address)
        assert chain.get_balance(bob.address) == before + 5 * ONE_GWEI

        access_control.remove_financial_operator(bob.address, sender=alice.address)
        fee_manager.fund_beneficiary(fees_owner, sender=owner.address, value=ONE_GWEI)
        with pytest.raises(Unauthorized):
            fee_manager.withdraw(ONE_GWEI, fees_owner, sender=bob.address)


class TestListings:
    """Test lending listings."""

    def test_listing_lifecycle(self, lending_service, alice, bob):
        """Should create, update and disable a listing as its owner."""
        assert lending_service.get_listings_count() == 1
        listing = lending_service.get_listing(0)
        assert listing.owner == alice.address
        assert listing.enabled

        with pytest.raises(Unauthorized):
            lending_service.disable_listing(0, sender=bob.address)

        lending_service.update_listing(
            ServiceListing(id=0, min_amount=10, max_amount=100, name="capped"), sender=alice.address
        )
        assert lending_service.get_listing(0).max_amount == 100

        lending_service.disable_listing(0, sender=alice.address)
        assert not lending_service.get_listing(0).enabled

    def test_bad_listings(self, lending_service, alice):
        """Should reject unknown ids and inverted bounds."""
        with pytest.raises(InvalidListing):
            lending_service.get_listing(7)
        with pytest.raises(InvalidAmount):
            lending_service.add_listing(ServiceListing(id=0, min_amount=10, max_amount=1), sender=alice.address)


class TestLendingFlow:
    """Test lending through a smart wallet."""

    def test_lend_through_smart_wallet(self, chain, factory, fee_manager, lending_service, alice, bob):
        """A user lends through a fresh wallet; the service ends up owing consumption fees."""
        wallet_address = factory.get_smart_wallet_address(bob.address)
        request, signature = sign_transaction_for_executor(chain, factory, bob.key, lending_service.address)

        lending_service.lend(request, signature, 0, sender=bob.address, value=DEPOSIT)

        assert chain.is_contract(wallet_address)
        assert chain.get_contract(wallet_address).nonce() == 1
        assert lending_service.get_balance(bob.address) == DEPOSIT
        assert chain.get_balance(lending_service.address) == DEPOSIT

        fees_owner = fee_manager.get_gateway_fees_owner()
        assert fee_manager.get_debt_balance_for(lending_service.address, alice.address) == ONE_GWEI
        assert fee_manager.get_debt_balance_for(lending_service.address, fees_owner) == ONE_GWEI

        names = [e.name for e in chain.last_receipt.events]
        assert names.index("Deployed") < names.index("Executed") < names.index("ServiceConsumptionFee")

    def test_custom_beneficiary(self, chain, factory, fee_manager, lending_service, bob, charlie):
        """Should owe the fee to the beneficiary named by the caller."""
        request, signature = sign_transaction_for_executor(chain, factory, bob.key, lending_service.address)
        lending_service.lend(request, signature, 0, charlie.address, sender=bob.address, value=DEPOSIT)
        assert fee_manager.get_debt_balance_for(lending_service.address, charlie.address) == ONE_GWEI

    def test_withdraw_back_to_wallet(self, chain, factory, lending_service, bob):
        """Should return deposits to the user's wallet."""
        request, signature = sign_transaction_for_executor(chain, factory, bob.key, lending_service.address)
        lending_service.lend(request, signature, 0, sender=bob.address, value=DEPOSIT)

        request, signature = sign_transaction_for_executor(chain, factory, bob.key, lending_service.address)
        assert request.nonce == 1
        lending_service.withdraw(request, signature, 0, sender=bob.address)

        wallet_address = factory.get_smart_wallet_address(bob.address)
        assert chain.get_balance(wallet_address) == DEPOSIT
        assert lending_service.get_balance(bob.address) == 0

    def test_signature_replay_across_calls(self, chain, factory, lending_service, bob):
        """Should refuse to reuse a consumed request."""
        request, signature = sign_transaction_for_executor(chain, factory, bob.key, lending_service.address)
        lending_service.lend(request, signature, 0, sender=bob.address, value=DEPOSIT)

        with pytest.raises(InvalidBlockForNonce):
            lending_service.lend(request, signature, 0, sender=bob.address, value=DEPOSIT)
        assert lending_service.get_balance(bob.address) == DEPOSIT

    def test_request_for_other_executor(self, chain, factory, lending_service, bob, charlie):
        """Should roll back wallet creation when the executor is wrong."""
        request, signature = sign_transaction_for_executor(chain, factory, bob.key, charlie.address)
        before = chain.get_balance(bob.address)

        with pytest.raises(InvalidExecutor):
            lending_service.lend(request, signature, 0, sender=bob.address, value=DEPOSIT)

        assert chain.get_balance(bob.address) == before
        assert not chain.is_contract(factory.get_smart_wallet_address(bob.address))

    def test_disabled_listing(self, chain, factory, lending_service, alice, bob):
        """Should refuse to lend against a disabled listing."""
        lending_service.disable_listing(0, sender=alice.address)
        request, signature = sign_transaction_for_executor(chain, factory, bob.key, lending_service.address)
        with pytest.raises(InvalidListing):
            lending_service.lend(request, signature, 0, sender=bob.address, value=DEPOSIT)

    def test_removed_service_cannot_charge(self, chain, gateway, factory, lending_service, alice, bob):
        """Removing the service from the gateway makes consumption revert as a whole."""
        gateway.remove_service(lending_service.address, sender=alice.address)
        request, signature = sign_transaction_for_executor(chain, factory, bob.key, lending_service.address)

        with pytest.raises(InvalidService):
            lending_service.lend(request, signature, 0, sender=bob.address, value=DEPOSIT)

        assert not chain.is_contract(factory.get_smart_wallet_address(bob.address))


class TestFeeSettlement:
    """Test paying and withdrawing consumption fees."""

    def test_pay_and_withdraw(self, chain, access_control, factory, fee_manager, lending_service, owner, alice, bob, charlie):
        """Should let provider and fees owner withdraw settled fees."""
        request, signature = sign_transaction_for_executor(chain, factory, bob.key, lending_service.address)
        lending_service.lend(request, signature, 0, sender=bob.address, value=DEPOSIT)
        debt = fee_manager.get_debt_balance(lending_service.address)
        assert debt == 2 * ONE_GWEI

        # the provider settles the service's debt
        fee_manager.pay_in_behalf_of(lending_service.address, sender=alice.address, value=debt)
        assert fee_manager.get_debt_balance(lending_service.address) == 0

        before = chain.get_balance(alice.address)
        fee_manager.withdraw(ONE_GWEI, sender=alice.address)
        assert chain.get_balance(alice.address) == before + ONE_GWEI

        access_control.add_financial_owner(charlie.address, sender=owner.address)
        access_control.add_financial_operator(charlie.address, sender=charlie.address)
        fees_owner = fee_manager.get_gateway_fees_owner()
        fee_manager.withdraw(ONE_GWEI, fees_owner, sender=charlie.address)

        assert fee_manager.get_total_balance() == 0
        assert chain.get_balance(fee_manager.address) == 0


class TestBorrowFlow:
    """Test borrowing through a smart wallet."""

    def test_borrow_records_loan_for_wallet(self, chain, gateway, factory, alice, bob):
        """Should record the loan against the user's wallet."""
        service = chain.deploy(DummyBorrowService, gateway.address, factory.address, sender=alice.address)
        service.add_listing(ServiceListing(id=0, min_amount=1, max_amount=1000), sender=alice.address)
        gateway.add_service(service.address, sender=alice.address)

        request, signature = sign_transaction_for_executor(chain, factory, bob.key, service.address)
        service.borrow(request, signature, 500, 0, sender=bob.address)

        wallet_address = factory.get_smart_wallet_address(bob.address)
        assert service.get_loan(wallet_address) == 500
        assert service.calculate_required_collateral(500, bob.address) == 1000
        assert service.service_provider_name() == "Dummy"
