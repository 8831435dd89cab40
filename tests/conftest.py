"""
Pytest configuration for rif_gateway tests.
"""
from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from eth_account import Account

# Add package source to path
package_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(package_src))

# Set test environment
os.environ.setdefault("RIF_GATEWAY_ENVIRONMENT", "dev")

from rif_gateway.chain.vm import Chain  # noqa: E402
from rif_gateway.config import GatewaySettings  # noqa: E402
from rif_gateway.deployment import deploy_gateway  # noqa: E402

# Well-known local development keys
PRIVATE_KEYS = [
    "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80",
    "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d",
    "0x5de4111afa1a4b94908f83103eb1f1706367c2e68ca870fc3fb9a804cdab365a",
    "0x7c852118294e51e653712a81e05800f419141751be58f605c371e15141b007a6",
    "0x47e179ec197488593b187f80a00eb0da91f1b9d0b13f8733639f19c30a34926a",
    "0x8b3a350cf5c34c9194ca85829a2df0ec3153be0318b5e2d3348e872092edffba",
]

INITIAL_BALANCE = 10**21
ONE_GWEI = 10**9


@pytest.fixture
def settings():
    return GatewaySettings(_env_file=None, chain_id=31337)


@pytest.fixture
def chain(settings):
    return Chain(settings=settings)


@pytest.fixture
def accounts(chain):
    """Funded local accounts; index 0 deploys by default."""
    funded = [Account.from_key(key) for key in PRIVATE_KEYS]
    for account in funded:
        chain.set_balance(account.address, INITIAL_BALANCE)
    return funded


@pytest.fixture
def owner(accounts):
    return accounts[0]


@pytest.fixture
def alice(accounts):
    return accounts[1]


@pytest.fixture
def bob(accounts):
    return accounts[2]


@pytest.fixture
def charlie(accounts):
    return accounts[3]


@pytest.fixture
def deployment(chain, owner):
    return deploy_gateway(chain, owner.address)


@pytest.fixture
def access_control(deployment):
    return deployment.access_control


@pytest.fixture
def gateway(deployment):
    return deployment.gateway


@pytest.fixture
def fee_manager(deployment):
    return deployment.fee_manager


@pytest.fixture
def factory(deployment):
    return deployment.smart_wallet_factory
