"""Async JSON-RPC client for a Solana cluster.

A thin wrapper over `httpx.AsyncClient`. Every failure at the HTTP or
JSON-RPC level becomes a `TransportError`; nothing is retried. The only
exception is `sendTransaction`, whose JSON-RPC errors are the cluster
rejecting the transaction and surface as `TransactionRejectedError`.
"""

import asyncio
import base64
import json
from typing import Any

import httpx
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction, VersionedTransaction

from ..config import DEFAULT_COMMITMENT, DEFAULT_POLL_INTERVAL, DEFAULT_TIMEOUT
from ..errors import (
    BlockhashExpiredError,
    TransactionFailedError,
    TransactionRejectedError,
    TransportError,
)
from ..logging import get_logger
from .types import (
    Account,
    EpochInfo,
    InflationRate,
    LatestBlockhash,
    SignatureStatus,
    Supply,
    VoteAccountStatus,
)

logger = get_logger("rpc")

# getMultipleAccounts accepts at most 100 keys per call
MAX_MULTIPLE_ACCOUNTS = 100


def _summarize(payload: Any, limit: int = 400) -> str:
    serialized = json.dumps(payload, default=str)
    if len(serialized) > limit:
        return serialized[: limit - 3] + "..."
    return serialized


class RpcClient:
    """
    JSON-RPC client bound to one endpoint and commitment level.

    Use as an async context manager, or pass an existing `httpx.AsyncClient`
    via `http_client` (the caller then owns its lifetime).
    """

    def __init__(
        self,
        url: str,
        commitment: str = DEFAULT_COMMITMENT,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.commitment = commitment
        self.poll_interval = poll_interval
        self._timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None
        self._request_id = 0

    async def __aenter__(self) -> "RpcClient":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def _call(self, method: str, params: list[Any] | None = None) -> dict[str, Any]:
        """Send one request and return the decoded JSON-RPC envelope."""
        if self._client is None:
            raise RuntimeError("RPC client not initialized; use async context manager")

        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params or [],
        }
        logger.debug("RPC -> %s %s", method, _summarize(payload["params"]))

        try:
            response = await self._client.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise TransportError(method, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise TransportError(method, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise TransportError(method, f"invalid JSON response: {e}") from e

        if not isinstance(body, dict):
            raise TransportError(method, "malformed JSON-RPC response")

        logger.debug("RPC <- %s %s", method, _summarize(body))
        return body

    async def request(self, method: str, params: list[Any] | None = None) -> Any:
        """Send a request and return its `result`."""
        body = await self._call(method, params)
        error = body.get("error")
        if error is not None:
            raise TransportError(
                method,
                str(error.get("message", error)),
                code=error.get("code"),
                data=error.get("data"),
            )
        if "result" not in body:
            raise TransportError(method, "response has neither result nor error")
        return body["result"]

    def _config(self, **extra: Any) -> dict[str, Any]:
        config: dict[str, Any] = {"commitment": self.commitment}
        config.update({k: v for k, v in extra.items() if v is not None})
        return config

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def get_account(self, pubkey: Pubkey) -> Account | None:
        """Fetch one account, or None if it does not exist."""
        result = await self.request(
            "getAccountInfo", [str(pubkey), self._config(encoding="base64")]
        )
        value = result.get("value")
        if value is None:
            return None
        try:
            return Account.from_json(value)
        except (KeyError, ValueError) as e:
            raise TransportError("getAccountInfo", f"malformed account: {e}") from e

    async def get_multiple_accounts(self, pubkeys: list[Pubkey]) -> list[Account | None]:
        """Fetch accounts positionally; missing accounts are None."""
        if len(pubkeys) > MAX_MULTIPLE_ACCOUNTS:
            raise ValueError(f"At most {MAX_MULTIPLE_ACCOUNTS} accounts per request")
        result = await self.request(
            "getMultipleAccounts",
            [[str(p) for p in pubkeys], self._config(encoding="base64")],
        )
        values = result.get("value") or []
        if len(values) != len(pubkeys):
            raise TransportError(
                "getMultipleAccounts",
                f"expected {len(pubkeys)} accounts, got {len(values)}",
            )
        try:
            return [Account.from_json(v) if v is not None else None for v in values]
        except (KeyError, ValueError) as e:
            raise TransportError("getMultipleAccounts", f"malformed account: {e}") from e

    async def get_balance(self, pubkey: Pubkey) -> int:
        result = await self.request("getBalance", [str(pubkey), self._config()])
        return int(result["value"])

    async def get_minimum_balance_for_rent_exemption(self, size: int) -> int:
        result = await self.request(
            "getMinimumBalanceForRentExemption", [size, self._config()]
        )
        return int(result)

    async def get_stake_minimum_delegation(self) -> int:
        result = await self.request("getStakeMinimumDelegation", [self._config()])
        return int(result["value"])

    async def request_airdrop(self, pubkey: Pubkey, lamports: int) -> Signature:
        result = await self.request("requestAirdrop", [str(pubkey), lamports, self._config()])
        return Signature.from_string(result)

    # ------------------------------------------------------------------
    # Cluster
    # ------------------------------------------------------------------

    async def get_epoch_info(self) -> EpochInfo:
        result = await self.request("getEpochInfo", [self._config()])
        return EpochInfo.from_json(result)

    async def get_latest_blockhash(self) -> LatestBlockhash:
        result = await self.request("getLatestBlockhash", [self._config()])
        return LatestBlockhash.from_json(result["value"])

    async def get_slot(self) -> int:
        return int(await self.request("getSlot", [self._config()]))

    async def get_block_height(self) -> int:
        return int(await self.request("getBlockHeight", [self._config()]))

    async def get_block_time(self, slot: int) -> int | None:
        return await self.request("getBlockTime", [slot])

    async def get_vote_accounts(self, vote_pubkey: Pubkey | None = None) -> VoteAccountStatus:
        """Fetch the cluster's vote accounts, optionally filtered to one."""
        config = self._config(
            votePubkey=str(vote_pubkey) if vote_pubkey is not None else None
        )
        result = await self.request("getVoteAccounts", [config])
        return VoteAccountStatus.from_json(result)

    async def get_version(self) -> dict[str, Any]:
        return await self.request("getVersion")

    async def get_supply(self) -> Supply:
        result = await self.request(
            "getSupply", [self._config(excludeNonCirculatingAccountsList=True)]
        )
        return Supply.from_json(result["value"])

    async def get_inflation_rate(self) -> InflationRate:
        result = await self.request("getInflationRate")
        return InflationRate.from_json(result)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def get_signature_statuses(
        self, signatures: list[Signature], search_history: bool = False
    ) -> list[SignatureStatus | None]:
        result = await self.request(
            "getSignatureStatuses",
            [[str(s) for s in signatures], {"searchTransactionHistory": search_history}],
        )
        return [
            SignatureStatus.from_json(v) if v is not None else None
            for v in result["value"]
        ]

    async def get_transaction(self, signature: Signature) -> dict[str, Any] | None:
        """Fetch a transaction in `jsonParsed` encoding."""
        commitment = "confirmed" if self.commitment == "processed" else self.commitment
        return await self.request(
            "getTransaction",
            [
                str(signature),
                {
                    "encoding": "jsonParsed",
                    "commitment": commitment,
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )

    async def send_transaction(
        self, transaction: Transaction | VersionedTransaction
    ) -> Signature:
        """Submit a signed transaction without waiting for confirmation."""
        encoded = base64.b64encode(bytes(transaction)).decode("ascii")
        body = await self._call(
            "sendTransaction",
            [encoded, {"encoding": "base64", "preflightCommitment": self.commitment}],
        )
        error = body.get("error")
        if error is not None:
            data = error.get("data") or {}
            logs = data.get("logs") if isinstance(data, dict) else None
            raise TransactionRejectedError(
                str(error.get("message", error)), code=error.get("code"), logs=logs
            )
        return Signature.from_string(body["result"])

    async def confirm_transaction(self, signature: Signature) -> bool:
        """Check once whether `signature` has reached the client's commitment."""
        status = (await self.get_signature_statuses([signature]))[0]
        return status is not None and status.err is None and status.satisfies(self.commitment)

    async def wait_for_confirmation(
        self, signature: Signature, last_valid_block_height: int
    ) -> Signature:
        """
        Poll until `signature` reaches the client's commitment.

        The wait ends when the transaction is confirmed, fails on-chain, or the
        cluster moves past `last_valid_block_height` without seeing it.
        """
        while True:
            status = (await self.get_signature_statuses([signature]))[0]
            if status is not None:
                if status.err is not None:
                    raise TransactionFailedError(signature, status.err)
                if status.satisfies(self.commitment):
                    return signature
            elif await self.get_block_height() > last_valid_block_height:
                raise BlockhashExpiredError(signature, last_valid_block_height)
            await asyncio.sleep(self.poll_interval)

    async def send_and_confirm_transaction(
        self,
        transaction: Transaction | VersionedTransaction,
        last_valid_block_height: int,
    ) -> Signature:
        signature = await self.send_transaction(transaction)
        logger.info("Sent transaction %s", signature, extra={"extra": {"signature": str(signature)}})
        await self.wait_for_confirmation(signature, last_valid_block_height)
        logger.info(
            "Transaction %s reached %s",
            signature,
            self.commitment,
            extra={"extra": {"signature": str(signature), "commitment": self.commitment}},
        )
        return signature
