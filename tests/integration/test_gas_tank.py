"""
Integration tests for the gas tank.

These tests verify:
1. The three gates run in order and stop at the first refusal
2. Wallet deployment whitelists the new wallet
3. Eager and lazy handshake failure handling
4. Provider URL updates only change memory after persisting
"""

import pytest

from zerowallet.application.lifecycle import LifecycleState
from zerowallet.application.services import GasTank
from zerowallet.domain.exceptions import (
    ContractNotWhitelistedException,
    InvalidArgumentException,
    RelayerException,
    RelayerUnavailableException,
    StoreException,
    UnauthorizedException,
    WalletNotDeployedException,
)


async def login(gas_tank, account, sign_nonce):
    """Register the account and return (signed_nonce, nonce)."""
    nonce = await gas_tank.register_user(account.address)
    return sign_nonce(account, nonce), nonce


# =============================================================================
# Authorization Gates
# =============================================================================

class TestBuildTransaction:
    """Tests for build_transaction gating."""

    @pytest.mark.asyncio
    async def test_unregistered_user_is_unauthorized(
        self,
        gas_tank,
        user_account,
        sign_nonce,
    ):
        with pytest.raises(UnauthorizedException):
            await gas_tank.build_transaction(
                "0xdeadbeef",
                "0xC1",
                user_account.address,
                sign_nonce(user_account, "nonce"),
                "nonce",
            )

    @pytest.mark.asyncio
    async def test_wrong_signer_is_unauthorized(
        self,
        gas_tank,
        user_account,
        other_account,
        sign_nonce,
    ):
        nonce = await gas_tank.register_user(user_account.address)

        with pytest.raises(UnauthorizedException):
            await gas_tank.build_transaction(
                "0xdeadbeef",
                "0xC1",
                user_account.address,
                sign_nonce(other_account, nonce),
                nonce,
            )

    @pytest.mark.asyncio
    async def test_missing_wallet_refused(self, gas_tank, user_account, sign_nonce):
        signed, nonce = await login(gas_tank, user_account, sign_nonce)

        with pytest.raises(WalletNotDeployedException):
            await gas_tank.build_transaction(
                "0xdeadbeef", "0xC1", user_account.address, signed, nonce
            )

    @pytest.mark.asyncio
    async def test_wallet_gate_runs_before_whitelist_gate(
        self,
        gas_tank,
        user_account,
        sign_nonce,
    ):
        """Without a wallet the target is never checked."""
        signed, nonce = await login(gas_tank, user_account, sign_nonce)

        with pytest.raises(WalletNotDeployedException):
            await gas_tank.build_transaction(
                "0xdeadbeef", "0xNotListed", user_account.address, signed, nonce
            )

    @pytest.mark.asyncio
    async def test_target_not_whitelisted_refused(
        self,
        gas_tank,
        relayer,
        user_account,
        sign_nonce,
    ):
        signed, nonce = await login(gas_tank, user_account, sign_nonce)
        relayer.wallets[user_account.address] = "0xWallet"

        with pytest.raises(ContractNotWhitelistedException):
            await gas_tank.build_transaction(
                "0xdeadbeef", "0xNotListed", user_account.address, signed, nonce
            )

    @pytest.mark.asyncio
    async def test_all_gates_pass(self, gas_tank, relayer, user_account, sign_nonce):
        signed, nonce = await login(gas_tank, user_account, sign_nonce)
        relayer.wallets[user_account.address] = "0xWallet"

        built = await gas_tank.build_transaction(
            "0xdeadbeef", "0xC1", user_account.address, signed, nonce
        )

        assert built.wallet_address == "0xWallet"
        assert built.transaction_body["to"] == "0xC1"
        assert built.transaction_body["from"] == "0xWallet"
        assert built.to_dict()["scwAddress"] == "0xWallet"

    @pytest.mark.asyncio
    async def test_whitelist_change_applies_to_next_call(
        self,
        gas_tank,
        relayer,
        user_account,
        sign_nonce,
    ):
        """Gates read current state on every call."""
        signed, nonce = await login(gas_tank, user_account, sign_nonce)
        relayer.wallets[user_account.address] = "0xWallet"
        await gas_tank.remove_from_whitelist("0xC1")

        with pytest.raises(ContractNotWhitelistedException):
            await gas_tank.build_transaction(
                "0xdeadbeef", "0xC1", user_account.address, signed, nonce
            )


class TestSendGaslessTransaction:
    """Tests for send_gasless_transaction."""

    @pytest.mark.asyncio
    async def test_sends_with_wallet_from_relayer(
        self,
        gas_tank,
        relayer,
        user_account,
        sign_nonce,
    ):
        signed, nonce = await login(gas_tank, user_account, sign_nonce)
        relayer.wallets[user_account.address] = "0xWallet"

        tx_hash = await gas_tank.send_gasless_transaction(
            {"to": "0xC1", "data": "0x01"},
            "0xsignature",
            user_account.address,
            signed,
            nonce,
        )

        assert tx_hash.startswith("0x")
        assert relayer.sent[-1]["wallet_address"] == "0xWallet"
        assert relayer.sent[-1]["signature"] == "0xsignature"

    @pytest.mark.asyncio
    async def test_body_without_target_is_invalid(
        self,
        gas_tank,
        user_account,
        sign_nonce,
    ):
        signed, nonce = await login(gas_tank, user_account, sign_nonce)

        with pytest.raises(InvalidArgumentException):
            await gas_tank.send_gasless_transaction(
                {"data": "0x01"}, "0xsig", user_account.address, signed, nonce
            )

    @pytest.mark.asyncio
    async def test_target_from_body_is_checked(
        self,
        gas_tank,
        relayer,
        user_account,
        sign_nonce,
    ):
        signed, nonce = await login(gas_tank, user_account, sign_nonce)
        relayer.wallets[user_account.address] = "0xWallet"

        with pytest.raises(ContractNotWhitelistedException):
            await gas_tank.send_gasless_transaction(
                {"to": "0xC9"}, "0xsig", user_account.address, signed, nonce
            )
        assert relayer.sent == []


class TestDeployProxyWallet:
    """Tests for deploy_proxy_wallet."""

    @pytest.mark.asyncio
    async def test_deployed_wallet_is_whitelisted(
        self,
        project,
        gas_tank,
        user_account,
        sign_nonce,
    ):
        signed, nonce = await login(gas_tank, user_account, sign_nonce)

        wallet = await gas_tank.deploy_proxy_wallet(user_account.address, signed, nonce)

        assert await gas_tank.authorizer.is_whitelisted(wallet)
        snapshots = await project.snapshot_with_balances()
        assert wallet in snapshots[0].whitelist

    @pytest.mark.asyncio
    async def test_deploy_requires_authorization(
        self,
        gas_tank,
        relayer,
        user_account,
        sign_nonce,
    ):
        with pytest.raises(UnauthorizedException):
            await gas_tank.deploy_proxy_wallet(
                user_account.address, sign_nonce(user_account, "x"), "x"
            )
        assert relayer.wallets == {}

    @pytest.mark.asyncio
    async def test_deployed_wallet_passes_wallet_gate(
        self,
        gas_tank,
        user_account,
        sign_nonce,
    ):
        signed, nonce = await login(gas_tank, user_account, sign_nonce)
        wallet = await gas_tank.deploy_proxy_wallet(user_account.address, signed, nonce)

        built = await gas_tank.build_transaction(
            "0x", "0xC1", user_account.address, signed, nonce
        )

        assert built.wallet_address == wallet


# =============================================================================
# Handshake Lifecycle
# =============================================================================

class TestHandshake:
    """Tests for eager and lazy handshake failure handling."""

    @pytest.mark.asyncio
    async def test_ready_after_handshake(self, gas_tank):
        assert gas_tank.state is LifecycleState.READY
        assert await gas_tank.ready() is LifecycleState.READY

    @pytest.mark.asyncio
    async def test_initializing_until_handshake_completes(self, gas_tank, store, relayer):
        tank = GasTank(gas_tank.details, store, relayer, eager=True)

        assert tank.state is LifecycleState.INITIALIZING
        await tank.ready()
        assert tank.state is LifecycleState.READY

    @pytest.mark.asyncio
    async def test_eager_failure_raised_to_every_waiter(
        self,
        gas_tank,
        store,
        failing_relayer,
    ):
        tank = GasTank(gas_tank.details, store, failing_relayer, eager=True)

        with pytest.raises(RelayerException):
            await tank.ready()
        with pytest.raises(RelayerException):
            await tank.ready()
        assert tank.state is LifecycleState.FAULTED
        assert failing_relayer.handshakes == [5]

    @pytest.mark.asyncio
    async def test_lazy_failure_is_tolerated(
        self,
        gas_tank,
        store,
        failing_relayer,
        user_account,
    ):
        tank = GasTank(gas_tank.details, store, failing_relayer, eager=False)

        assert await tank.ready() is LifecycleState.FAULTED

        # Administrative operations keep working
        nonce = await tank.register_user(user_account.address)
        assert await tank.current_nonce(user_account.address) == nonce
        await tank.add_to_whitelist("0xC2")
        assert await tank.authorizer.is_whitelisted("0xC2")

    @pytest.mark.asyncio
    async def test_lazy_failure_blocks_relayer_calls(
        self,
        gas_tank,
        store,
        failing_relayer,
        user_account,
        sign_nonce,
    ):
        tank = GasTank(gas_tank.details, store, failing_relayer, eager=False)
        signed, nonce = await login(tank, user_account, sign_nonce)

        with pytest.raises(RelayerUnavailableException):
            await tank.deploy_proxy_wallet(user_account.address, signed, nonce)
        with pytest.raises(RelayerUnavailableException):
            await tank.wallet_status(user_account.address)

    @pytest.mark.asyncio
    async def test_lazy_faulted_tank_still_refuses_unauthorized(
        self,
        gas_tank,
        store,
        failing_relayer,
        user_account,
        sign_nonce,
    ):
        """Gate refusals are never replaced by the handshake fault."""
        tank = GasTank(gas_tank.details, store, failing_relayer, eager=False)

        with pytest.raises(UnauthorizedException):
            await tank.build_transaction(
                "0x", "0xC1", user_account.address, sign_nonce(user_account, "n"), "n"
            )


# =============================================================================
# Administration
# =============================================================================

class TestAdministration:
    """Tests for pass-through administration and provider URL updates."""

    @pytest.mark.asyncio
    async def test_user_lifecycle_pass_through(self, gas_tank, user_account):
        assert not await gas_tank.user_exists(user_account.address)

        first = await gas_tank.register_user(user_account.address)
        second = await gas_tank.refresh_nonce(user_account.address)
        assert first != second
        assert await gas_tank.user_exists(user_account.address)

        await gas_tank.deregister_user(user_account.address)
        assert not await gas_tank.user_exists(user_account.address)

    @pytest.mark.asyncio
    async def test_update_provider_url_persists(self, project, gas_tank):
        await gas_tank.update_provider_url("https://rpc.example/new")

        assert gas_tank.details.provider_url == "https://rpc.example/new"
        reloaded = await project.gas_tank_by_chain(5)
        assert reloaded.details.provider_url == "https://rpc.example/new"

    @pytest.mark.asyncio
    async def test_update_provider_url_failure_keeps_memory(
        self,
        manager,
        project,
        gas_tank,
    ):
        """When the row is gone nothing is persisted and memory is unchanged."""
        await manager.remove_project(project.project_id)

        with pytest.raises(StoreException):
            await gas_tank.update_provider_url("https://rpc.example/new")
        assert gas_tank.details.provider_url == "https://rpc.example/5"

    @pytest.mark.asyncio
    async def test_info_hides_funding_key(self, gas_tank):
        info = gas_tank.info()

        assert info["chain_id"] == 5
        assert info["state"] == "ready"
        assert gas_tank.details.api_key not in str(info)
        assert gas_tank.details.api_key not in repr(gas_tank.details)
