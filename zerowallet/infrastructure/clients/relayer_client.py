"""HTTP implementation of the relayer client."""

import asyncio
from decimal import Decimal, InvalidOperation
from typing import Any, Dict

import httpx
import structlog

from zerowallet.core.config import settings
from zerowallet.core.metrics import (
    record_relayer_failure,
    track_relayer_latency,
)
from zerowallet.domain.entities import FundingCredentials, WalletStatus
from zerowallet.domain.exceptions import RelayerException, RelayerTimeoutException
from zerowallet.domain.interfaces import GasTankRelayer, RelayerClient

logger = structlog.get_logger(__name__)


class HttpRelayerClient(RelayerClient):
    """
    HTTP client for the gasless transaction relayer.

    Dashboard calls (provisioning, balances) authenticate with the
    operator auth token; per-gas-tank calls use the tank's funding api key.
    """

    def __init__(
        self,
        base_url: str | None = None,
        data_url: str | None = None,
        auth_token: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = (base_url or settings.relayer_api_url).rstrip("/")
        self._data_url = (data_url or settings.relayer_data_api_url).rstrip("/")
        self._auth_token = (
            auth_token
            if auth_token is not None
            else settings.relayer_auth_token.get_secret_value()
        )
        self._timeout = timeout if timeout is not None else settings.relayer_timeout
        self._max_retries = (
            max_retries if max_retries is not None else settings.relayer_max_retries
        )
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    async def provision_funding(self, chain_id: int, name: str) -> FundingCredentials:
        """Create a funded dapp for the chain under the given name."""
        data = await self.request(
            "provision_funding",
            name,
            "POST",
            f"{self._base_url}/api/v1/dapp/public-api/create-dapp",
            headers={"authToken": self._auth_token},
            data={
                "dappName": name,
                "networkId": str(chain_id),
                "enableBiconomyWallet": "true",
            },
            # Provisioning is not idempotent
            retry=False,
        )

        payload = data.get("data") or {}
        try:
            return FundingCredentials(
                api_key=payload["apiKey"],
                funding_key=int(payload["fundingKey"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error("relayer_malformed_response", operation="provision_funding")
            raise RelayerException("provision_funding", name) from e

    async def fetch_balance(self, api_key: str) -> Decimal:
        """Fetch the effective gas tank balance in standard units."""
        data = await self.request(
            "fetch_balance",
            "gas-tank-balance",
            "GET",
            f"{self._data_url}/api/v1/dapp/gas-tank-balance",
            headers={"authToken": self._auth_token, "apiKey": api_key},
        )

        try:
            balance = data["dappGasTankData"]["effectiveBalanceInStandardForm"]
            return Decimal(str(balance))
        except (KeyError, TypeError, InvalidOperation) as e:
            logger.error("relayer_malformed_response", operation="fetch_balance")
            raise RelayerException("fetch_balance", "gas-tank-balance") from e

    def for_gas_tank(
        self,
        chain_id: int,
        api_key: str,
        provider_url: str,
    ) -> "HttpGasTankRelayer":
        return HttpGasTankRelayer(self, chain_id, api_key, provider_url)

    async def request(
        self,
        operation: str,
        entity_key: str,
        method: str,
        url: str,
        headers: Dict[str, str] | None = None,
        retry: bool = True,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """
        Send a request and return the decoded JSON body.

        Timeouts, transport errors and 5xx responses are retried with
        exponential backoff when `retry` is set; 4xx responses never are.
        At least one attempt is made whatever `max_retries` says.

        Raises:
            RelayerTimeoutException: If every attempt timed out
            RelayerException: On any other failure
        """
        attempts = max(self._max_retries, 1) if retry else 1
        last_exception: RelayerException | None = None

        for attempt in range(attempts):
            try:
                with track_relayer_latency(operation):
                    async with httpx.AsyncClient(
                        timeout=self._timeout,
                        transport=self._transport,
                    ) as client:
                        response = await client.request(
                            method,
                            url,
                            headers=headers,
                            **kwargs,
                        )

                if response.status_code >= 500:
                    record_relayer_failure(operation, "error")
                    last_exception = RelayerException(
                        operation,
                        entity_key,
                        status_code=response.status_code,
                    )
                    logger.warning(
                        "relayer_server_error",
                        operation=operation,
                        entity_key=entity_key,
                        status_code=response.status_code,
                        attempt=attempt + 1,
                    )
                elif response.status_code >= 400:
                    record_relayer_failure(operation, "rejected")
                    logger.warning(
                        "relayer_request_rejected",
                        operation=operation,
                        entity_key=entity_key,
                        status_code=response.status_code,
                    )
                    raise RelayerException(
                        operation,
                        entity_key,
                        status_code=response.status_code,
                    )
                else:
                    return response.json()

            except httpx.TimeoutException:
                record_relayer_failure(operation, "timeout")
                last_exception = RelayerTimeoutException(operation, entity_key)
                logger.warning(
                    "relayer_timeout",
                    operation=operation,
                    entity_key=entity_key,
                    attempt=attempt + 1,
                    max_retries=attempts,
                )
            except RelayerException:
                raise
            except (httpx.HTTPError, ValueError) as e:
                record_relayer_failure(operation, "error")
                last_exception = RelayerException(operation, entity_key)
                logger.error(
                    "relayer_error",
                    operation=operation,
                    entity_key=entity_key,
                    attempt=attempt + 1,
                    error_type=type(e).__name__,
                )

            # Exponential backoff
            if attempt < attempts - 1:
                await asyncio.sleep(2**attempt * 0.1)

        raise last_exception or RelayerException(operation, entity_key)


class HttpGasTankRelayer(GasTankRelayer):
    """
    Relayer session for one gas tank, bound to its funding api key.

    The `/api/v1/wallet/*` paths are the contract of the relayer gateway
    this client talks to. They are not part of the public relayer API;
    the gateway wraps the relayer's wallet SDK behind them.
    """

    def __init__(
        self,
        client: HttpRelayerClient,
        chain_id: int,
        api_key: str,
        provider_url: str,
    ):
        self._client = client
        self._chain_id = chain_id
        self._api_key = api_key
        self._provider_url = provider_url
        self._entity_key = f"chain:{chain_id}"
        self.system_info: Dict[str, Any] | None = None

    @property
    def _headers(self) -> Dict[str, str]:
        return {"x-api-key": self._api_key}

    def _url(self, path: str) -> str:
        return f"{self._client.base_url}{path}"

    async def connect(self) -> None:
        """Fetch the relayer's network configuration for this chain."""
        self.system_info = await self._client.request(
            "connect",
            self._entity_key,
            "GET",
            self._url("/api/v1/systemInfo"),
            headers=self._headers,
            params={"networkId": self._chain_id},
        )
        logger.info("relayer_connected", chain_id=self._chain_id)

    async def wallet_status(self, user_address: str) -> WalletStatus:
        data = await self._client.request(
            "wallet_status",
            self._entity_key,
            "POST",
            self._url("/api/v1/wallet/exists"),
            headers=self._headers,
            json={"eoa": user_address, "networkId": self._chain_id},
        )
        return WalletStatus(
            exists=bool(data.get("doesWalletExist")),
            wallet_address=data.get("walletAddress") or "",
        )

    async def deploy_wallet(self, user_address: str) -> str:
        data = await self._client.request(
            "deploy_wallet",
            self._entity_key,
            "POST",
            self._url("/api/v1/wallet/deploy"),
            headers=self._headers,
            json={
                "eoa": user_address,
                "networkId": self._chain_id,
                "providerUrl": self._provider_url,
            },
            retry=False,
        )
        wallet_address = data.get("walletAddress")
        if not wallet_address:
            raise RelayerException("deploy_wallet", self._entity_key)

        logger.info(
            "wallet_deployed",
            chain_id=self._chain_id,
            wallet_address=wallet_address,
            tx_hash=data.get("txHash"),
        )
        return wallet_address

    async def build_transaction(
        self,
        data: str,
        target_contract: str,
        wallet_address: str,
    ) -> Dict[str, Any]:
        response = await self._client.request(
            "build_transaction",
            self._entity_key,
            "POST",
            self._url("/api/v1/wallet/build-exec-transaction"),
            headers=self._headers,
            json={
                "data": data,
                "to": target_contract,
                "walletAddress": wallet_address,
                "networkId": self._chain_id,
            },
        )
        body = response.get("safeTXBody")
        if not isinstance(body, dict):
            raise RelayerException("build_transaction", self._entity_key)
        return body

    async def send_transaction(
        self,
        transaction_body: Dict[str, Any],
        wallet_address: str,
        signature: str,
    ) -> str:
        response = await self._client.request(
            "send_transaction",
            self._entity_key,
            "POST",
            self._url("/api/v1/wallet/send-transaction"),
            headers=self._headers,
            json={
                "execTransactionBody": transaction_body,
                "walletAddress": wallet_address,
                "signature": signature,
                "networkId": self._chain_id,
            },
            # A retried send could relay the transaction twice
            retry=False,
        )
        tx_hash = response.get("txHash")
        if not tx_hash:
            raise RelayerException("send_transaction", self._entity_key)
        return tx_hash
