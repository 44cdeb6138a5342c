"""Minimal JSON-RPC client for transaction receipts."""

from itertools import count
from typing import Any

import structlog
from cachetools import LRUCache

from lptrack.core.exceptions import UpstreamFetchError
from lptrack.services.base import BaseAPIClient

log = structlog.get_logger(__name__)


class RpcClient(BaseAPIClient):
    """JSON-RPC client with an in-memory receipt cache.

    Receipts of mined transactions never change, so a cached receipt is
    never refreshed.

    Example:
        rpc = RpcClient(url="https://bsc-dataseed.bnbchain.org")
        receipt = await rpc.get_transaction_receipt("0x12ab...")
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        cache_max_size: int = 10000,
        circuit_breaker_threshold: int = 5,
        circuit_breaker_cooldown: int = 30,
    ) -> None:
        super().__init__(
            service="rpc",
            base_url=url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            circuit_breaker_threshold=circuit_breaker_threshold,
            circuit_breaker_cooldown=circuit_breaker_cooldown,
        )
        self._receipts: LRUCache = LRUCache(maxsize=cache_max_size)
        self._ids = count(1)

    async def call(self, method: str, params: list[Any]) -> Any:
        """Perform one JSON-RPC call and return its ``result``.

        Raises:
            UpstreamFetchError: On transport errors or a JSON-RPC error object.
        """
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        response = await self.post(self.base_url, json=payload)
        body = self._json(response)

        if not isinstance(body, dict):
            raise UpstreamFetchError(service=self.service, message="Unexpected response shape")
        if body.get("error"):
            error = body["error"]
            if isinstance(error, dict):
                error = error.get("message", error)
            raise UpstreamFetchError(service=self.service, message=f"{method} failed: {error}")
        return body.get("result")

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        """Return the receipt of ``tx_hash``, or None if the node has none."""
        key = tx_hash.lower()
        cached = self._receipts.get(key)
        if cached is not None:
            log.debug("receipt_from_cache", tx_hash=tx_hash)
            return cached

        receipt = await self.call("eth_getTransactionReceipt", [tx_hash])
        if receipt is None:
            log.warning("receipt_not_found", tx_hash=tx_hash)
            return None
        if not isinstance(receipt, dict):
            raise UpstreamFetchError(service=self.service, message=f"Malformed receipt for {tx_hash}")

        self._receipts[key] = receipt
        return receipt
