"""
Fixtures for integration tests.

Provides:
- In-memory SQLite database with foreign keys enforced
- Store built on the real repositories
- Mock relayer client with per-chain handshake failures
- Wallet accounts and a helper to sign login nonces
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List

import pytest
import pytest_asyncio
from eth_account import Account
from eth_account.messages import defunct_hash_message, encode_defunct
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from zerowallet.application.services import ProjectsManager
from zerowallet.domain.entities import FundingCredentials, SignedChallenge, WalletStatus
from zerowallet.domain.exceptions import RelayerException
from zerowallet.domain.interfaces import GasTankRelayer, RelayerClient, Store
from zerowallet.infrastructure.database import Base, DatabaseSessionManager
from zerowallet.infrastructure.repositories import build_store


# =============================================================================
# Mock Clients
# =============================================================================

class MockGasTankRelayer(GasTankRelayer):
    """Relayer session that keeps deployed wallets on the parent client."""

    def __init__(self, client: "MockRelayerClient", chain_id: int, api_key: str):
        self.client = client
        self.chain_id = chain_id
        self.api_key = api_key

    async def connect(self) -> None:
        # Let the caller observe the INITIALIZING state first
        await asyncio.sleep(0)
        self.client.handshakes.append(self.chain_id)
        if self.chain_id in self.client.failing_chains:
            raise RelayerException("connect", f"chain:{self.chain_id}")

    async def wallet_status(self, user_address: str) -> WalletStatus:
        wallet = self.client.wallets.get(user_address)
        return WalletStatus(exists=wallet is not None, wallet_address=wallet or "")

    async def deploy_wallet(self, user_address: str) -> str:
        if user_address not in self.client.wallets:
            index = len(self.client.wallets) + 1
            self.client.wallets[user_address] = f"0x{index:040x}"
        return self.client.wallets[user_address]

    async def build_transaction(
        self,
        data: str,
        target_contract: str,
        wallet_address: str,
    ) -> Dict[str, Any]:
        return {
            "to": target_contract,
            "data": data,
            "from": wallet_address,
            "chainId": self.chain_id,
        }

    async def send_transaction(
        self,
        transaction_body: Dict[str, Any],
        wallet_address: str,
        signature: str,
    ) -> str:
        self.client.sent.append(
            {
                "body": transaction_body,
                "wallet_address": wallet_address,
                "signature": signature,
            }
        )
        return "0x" + "ab" * 32


class MockRelayerClient(RelayerClient):
    """Mock relayer that tracks provisioning, handshakes and relayed transactions."""

    def __init__(
        self,
        failing_chains: Iterable[int] = (),
        fail_provision: bool = False,
        balance: Decimal = Decimal("1.25"),
    ):
        self.failing_chains = set(failing_chains)
        self.fail_provision = fail_provision
        self.balance = balance
        self.provisioned: List[Dict[str, Any]] = []
        self.handshakes: List[int] = []
        self.wallets: Dict[str, str] = {}
        self.sent: List[Dict[str, Any]] = []
        self.balance_requests: List[str] = []

    async def provision_funding(self, chain_id: int, name: str) -> FundingCredentials:
        if self.fail_provision:
            raise RelayerException("provision_funding", name)
        self.provisioned.append({"chain_id": chain_id, "name": name})
        index = len(self.provisioned)
        return FundingCredentials(
            api_key=f"funding-key-{chain_id}-{index}",
            funding_key=1000 + index,
        )

    async def fetch_balance(self, api_key: str) -> Decimal:
        self.balance_requests.append(api_key)
        return self.balance

    def for_gas_tank(
        self,
        chain_id: int,
        api_key: str,
        provider_url: str,
    ) -> MockGasTankRelayer:
        return MockGasTankRelayer(self, chain_id, api_key)


class FakeClock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db(test_engine) -> DatabaseSessionManager:
    """Database manager bound to the test engine."""
    manager = DatabaseSessionManager()
    manager.init(engine=test_engine)
    return manager


@pytest_asyncio.fixture
async def store(db: DatabaseSessionManager) -> Store:
    """Store built on the real repositories."""
    return build_store(db)


# =============================================================================
# Mock Client Fixtures
# =============================================================================

@pytest.fixture
def relayer() -> MockRelayerClient:
    """Create a mock relayer client."""
    return MockRelayerClient()


@pytest.fixture
def failing_relayer() -> MockRelayerClient:
    """Create a relayer whose chain 5 handshake fails."""
    return MockRelayerClient(failing_chains={5})


@pytest.fixture
def unfunded_relayer() -> MockRelayerClient:
    """Create a relayer that refuses to provision funding."""
    return MockRelayerClient(fail_provision=True)


@pytest.fixture
def clock() -> FakeClock:
    """Create a settable clock."""
    return FakeClock()


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def manager(store: Store, relayer: MockRelayerClient) -> ProjectsManager:
    """Projects manager without a native project."""
    projects_manager = ProjectsManager(store, relayer)
    await projects_manager.ready()
    return projects_manager


@pytest_asyncio.fixture
async def project(manager: ProjectsManager):
    """The Acme project with no gas tanks."""
    return await manager.create_project("Acme", "0xOwner", ["http://x"])


@pytest_asyncio.fixture
async def gas_tank(project):
    """Ready gas tank on chain 5 whitelisting 0xC1."""
    tank = await project.add_gas_tank(5, "https://rpc.example/5", ["0xC1"])
    await tank.ready()
    return tank


# =============================================================================
# Wallet Fixtures
# =============================================================================

@pytest.fixture
def user_account():
    """A fresh wallet account for the user."""
    return Account.create()


@pytest.fixture
def other_account():
    """A second wallet account, never registered."""
    return Account.create()


@pytest.fixture
def sign_nonce() -> Callable[[Any, str], SignedChallenge]:
    """Sign a nonce the way wallets do with personal_sign."""

    def sign(account, nonce: str) -> SignedChallenge:
        signed = account.sign_message(encode_defunct(text=nonce))
        return SignedChallenge(
            message_hash=bytes(defunct_hash_message(text=nonce)),
            r=signed.r,
            s=signed.s,
            v=signed.v,
        )

    return sign
