"""Swap history: explorer transactions to decoded swap records."""

import structlog

from lptrack.core.exceptions import DecodeError
from lptrack.data.models.operation import SkippedRecord
from lptrack.data.models.swap import SwapRecord
from lptrack.services.explorer.client import ExplorerClient, filter_swap_transactions
from lptrack.services.rate_limiter import RequestPacer
from lptrack.services.rpc.client import RpcClient
from lptrack.services.rpc.decoder import decode_order_records

log = structlog.get_logger(__name__)


class SwapHistoryService:
    """Collects every aggregator swap of a wallet.

    Lists transactions via the explorer, keeps successful swap calls, then
    fetches receipts one at a time (paced) and decodes their OrderRecord
    logs. Logs that fail to decode are recorded in ``skipped`` and the run
    continues; transport failures abort with UpstreamFetchError.

    Example:
        service = SwapHistoryService(explorer, rpc, chain_id=56)
        records = await service.fetch_swap_records("0xabc...", from_block=0)
    """

    def __init__(
        self,
        explorer: ExplorerClient,
        rpc: RpcClient,
        chain_id: int,
        pacer: RequestPacer | None = None,
    ) -> None:
        self.explorer = explorer
        self.rpc = rpc
        self.chain_id = chain_id
        self.pacer = pacer or RequestPacer(delay_ms=100)
        self.skipped: list[SkippedRecord] = []

    async def fetch_swap_records(self, owner: str, from_block: int = 0) -> list[SwapRecord]:
        """Fetch and decode swap records of ``owner`` since ``from_block``.

        Raises:
            UpstreamFetchError: If the explorer or the RPC node fails.
        """
        self.skipped = []
        transactions = await self.explorer.fetch_transactions(
            owner, chain_id=self.chain_id, start_block=from_block
        )
        swaps = filter_swap_transactions(transactions)
        log.info(
            "swap_transactions_filtered",
            owner=owner,
            total=len(transactions),
            swaps=len(swaps),
        )

        records: list[SwapRecord] = []
        for tx in swaps:
            await self.pacer.acquire()
            receipt = await self.rpc.get_transaction_receipt(tx.hash)
            if receipt is None:
                self._skip(tx.hash, "Receipt not found")
                continue

            try:
                decoded = decode_order_records(
                    receipt, timestamp=tx.timestamp, on_error=self._skip_log
                )
            except DecodeError as e:
                self._skip(e.record_id or tx.hash, str(e))
                continue

            records.extend(
                record.model_copy(update={"gas_price": tx.gas_price or record.gas_price})
                for record in decoded
            )

        log.info("swap_records_decoded", owner=owner, records=len(records), skipped=len(self.skipped))
        return records

    def _skip_log(self, error: DecodeError) -> None:
        self._skip(error.record_id, str(error))

    def _skip(self, record_id: str | None, reason: str) -> None:
        log.warning("swap_record_skipped", record_id=record_id, reason=reason)
        self.skipped.append(SkippedRecord(source="receipt", record_id=record_id, reason=reason))
