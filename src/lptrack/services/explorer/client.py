"""Block explorer (Etherscan v2 multichain) transaction list client."""

from collections.abc import Iterable
from typing import Any

import structlog
from pydantic import ValidationError

from lptrack.core.exceptions import UpstreamFetchError
from lptrack.data.models.swap import ExplorerTransaction
from lptrack.services.base import BaseAPIClient

log = structlog.get_logger(__name__)

SWAP_FUNCTION_NAME = "smartSwapByOrderId"
NO_TRANSACTIONS_MESSAGE = "No transactions found"


def filter_swap_transactions(
    transactions: Iterable[ExplorerTransaction],
    function_name: str = SWAP_FUNCTION_NAME,
) -> list[ExplorerTransaction]:
    """Keep successful calls to the aggregator swap function."""
    return [
        tx
        for tx in transactions
        if function_name in tx.function_name and tx.succeeded
    ]


class ExplorerClient(BaseAPIClient):
    """Fetches a wallet's normal transactions from the block explorer.

    Example:
        client = ExplorerClient(api_url=settings.explorer_api_url, api_key="...")
        txs = await client.fetch_transactions("0xabc...", chain_id=56)
    """

    PAGE_OFFSET = 10000

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        circuit_breaker_threshold: int = 5,
        circuit_breaker_cooldown: int = 30,
    ) -> None:
        super().__init__(
            service="explorer",
            base_url=api_url,
            timeout=timeout,
            circuit_breaker_threshold=circuit_breaker_threshold,
            circuit_breaker_cooldown=circuit_breaker_cooldown,
        )
        self.api_key = api_key

    async def fetch_transactions(
        self,
        address: str,
        chain_id: int,
        start_block: int = 0,
        end_block: int = 99999999,
    ) -> list[ExplorerTransaction]:
        """Fetch the transaction list of ``address``, newest first.

        Args:
            address: Wallet address.
            chain_id: EVM chain id.
            start_block: First block to include.
            end_block: Last block to include.

        Returns:
            Parsed transactions (empty when the address has none).

        Raises:
            UpstreamFetchError: On transport errors or a non-OK API status.
        """
        params: dict[str, Any] = {
            "chainid": chain_id,
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": start_block,
            "endblock": end_block,
            "page": 1,
            "offset": self.PAGE_OFFSET,
            "sort": "desc",
            "apikey": self.api_key,
        }
        response = await self.get(self.base_url, params=params)
        body = self._json(response)

        if not isinstance(body, dict):
            raise UpstreamFetchError(service=self.service, message="Unexpected response shape")

        if body.get("status") != "1":
            if body.get("message") == NO_TRANSACTIONS_MESSAGE:
                log.info("explorer_no_transactions", address=address, chain_id=chain_id)
                return []
            raise UpstreamFetchError(
                service=self.service,
                message=f"API error: {body.get('message')} ({body.get('result')})",
            )

        try:
            transactions = [ExplorerTransaction.model_validate(row) for row in body["result"]]
        except (KeyError, TypeError, ValidationError) as e:
            raise UpstreamFetchError(
                service=self.service, message=f"Malformed transaction list: {e}"
            ) from e

        log.info(
            "explorer_transactions_fetched",
            address=address,
            chain_id=chain_id,
            count=len(transactions),
        )
        return transactions
