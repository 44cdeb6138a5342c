"""PnL reconstruction orchestration.

Coordinates the end-to-end flow of:
1. Fetching positions and swap records (concurrently, all or nothing)
2. Normalizing them into operations
3. Fetching the reference price series up to "now"
4. Building the valued timeline
5. Aggregating the report

Example:
    orchestrator = PnlOrchestrator.from_settings(get_settings())
    try:
        report = await orchestrator.build_report("0xabc...")
    finally:
        await orchestrator.close()
"""

import asyncio
import time
from collections.abc import Callable, Sequence
from decimal import Decimal

import structlog

from lptrack.config.chains import ChainConfig, get_chain_config
from lptrack.config.settings import Settings
from lptrack.core.pnl.aggregator import PnlAggregator
from lptrack.core.pnl.assets import AssetRegistry
from lptrack.core.pnl.normalizer import EventNormalizer, PartialWithdrawalPolicy
from lptrack.core.pnl.price_index import DEFAULT_FALLBACK_PRICE, PriceIndex
from lptrack.core.pnl.timeline import TimelineBuilder, price_window
from lptrack.data.models.operation import Operation
from lptrack.data.models.position import Position
from lptrack.data.models.report import PnlReport
from lptrack.data.models.swap import SwapRecord
from lptrack.services.explorer.client import ExplorerClient
from lptrack.services.explorer.swap_history import SwapHistoryService
from lptrack.services.pricing.binance_client import BinanceKlinesClient
from lptrack.services.pricing.cache import PriceSeriesCache
from lptrack.services.pricing.history import HistoricalPriceService
from lptrack.services.rate_limiter import RequestPacer
from lptrack.services.rpc.client import RpcClient
from lptrack.services.subgraph.client import SubgraphClient

log = structlog.get_logger(__name__)


class PnlOrchestrator:
    """Builds a PnlReport for a wallet from upstream data.

    Attributes:
        chain: Chain configuration of the tracked pair.
        subgraph: Source of positions.
        swap_history: Source of decoded swap records.
        prices: Source of the reference price series.
    """

    def __init__(
        self,
        chain: ChainConfig,
        subgraph: SubgraphClient,
        swap_history: SwapHistoryService,
        prices: HistoricalPriceService,
        policy: PartialWithdrawalPolicy = PartialWithdrawalPolicy.CLOSED,
        min_position_id: int | None = None,
        default_from_block: int = 0,
        resolution: str = "1m",
        fallback_price: Decimal = DEFAULT_FALLBACK_PRICE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.chain = chain
        self.subgraph = subgraph
        self.swap_history = swap_history
        self.prices = prices
        self.registry = AssetRegistry(chain)
        self.normalizer = EventNormalizer(self.registry, policy, min_position_id)
        self.builder = TimelineBuilder()
        self.aggregator = PnlAggregator(self.registry, policy)
        self.default_from_block = default_from_block
        self.resolution = resolution
        self.fallback_price = fallback_price
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, chain: str | None = None) -> "PnlOrchestrator":
        """Wire the upstream clients from settings.

        Raises:
            ConfigurationError: If the chain is unknown.
        """
        chain_config = get_chain_config(chain or settings.chain)
        breaker = {
            "circuit_breaker_threshold": settings.circuit_breaker_threshold,
            "circuit_breaker_cooldown": settings.circuit_breaker_cooldown,
        }

        subgraph = SubgraphClient(
            url=settings.subgraph_url,
            api_key=settings.subgraph_api_key.get_secret_value(),
            page_size=settings.subgraph_page_size,
            **breaker,
        )
        explorer = ExplorerClient(
            api_url=settings.explorer_api_url,
            api_key=settings.explorer_api_key.get_secret_value(),
            **breaker,
        )
        rpc = RpcClient(url=settings.rpc_url or chain_config.rpc_url, **breaker)
        swap_history = SwapHistoryService(
            explorer,
            rpc,
            chain_id=chain_config.chain_id,
            pacer=RequestPacer(delay_ms=settings.receipt_delay_ms),
        )
        prices = HistoricalPriceService(
            BinanceKlinesClient(base_url=settings.price_api_url),
            PriceSeriesCache(
                settings.price_cache_dir, ttl_seconds=settings.price_cache_ttl_seconds
            ),
            batch_size=settings.price_batch_size,
            batch_delay_ms=settings.price_batch_delay_ms,
        )

        return cls(
            chain=chain_config,
            subgraph=subgraph,
            swap_history=swap_history,
            prices=prices,
            policy=PartialWithdrawalPolicy(settings.partial_withdrawal_policy),
            min_position_id=settings.min_position_id,
            default_from_block=settings.swap_start_block,
            resolution=settings.price_resolution,
            fallback_price=settings.fallback_price,
        )

    async def build_report(
        self,
        owner: str,
        from_block: int | None = None,
        extra_operations: Sequence[Operation] = (),
    ) -> PnlReport:
        """Reconstruct the PnL report of ``owner``.

        Args:
            owner: Wallet address.
            from_block: First block scanned for swaps (settings default).
            extra_operations: Manual entries merged into the timeline, e.g.
                an opening balance acquired off-chain.

        Returns:
            The complete PnlReport.

        Raises:
            UpstreamFetchError: If any upstream source fails. No partial
                report is built.
        """
        now = int(self._clock())
        start_block = self.default_from_block if from_block is None else from_block
        log.info("pnl_report_started", owner=owner, chain=self.chain.name, from_block=start_block)

        positions, swaps = await self._fetch_sources(owner, start_block)
        positions = self.normalizer.select_positions(positions)

        normalized = self.normalizer.normalize(swaps, positions, now=now)
        operations = [*normalized.operations, *extra_operations]
        skipped = [*self.swap_history.skipped, *normalized.skipped]

        price_index = await self._price_index(operations, now)
        timeline = self.builder.build(operations, price_index)
        current_price = price_index.lookup(now)

        report = self.aggregator.aggregate(timeline, positions, current_price, skipped=skipped)
        log.info(
            "pnl_report_completed",
            owner=owner,
            positions=len(positions),
            swaps=len(swaps),
            operations=len(timeline),
            skipped=len(skipped),
        )
        return report

    async def _fetch_sources(
        self, owner: str, start_block: int
    ) -> tuple[list[Position], list[SwapRecord]]:
        """Fetch positions and swaps concurrently.

        If either fetch fails the other is cancelled and awaited before the
        error propagates, so no upstream call outlives the run.
        """
        positions_task = asyncio.create_task(self.subgraph.fetch_positions(owner))
        swaps_task = asyncio.create_task(
            self.swap_history.fetch_swap_records(owner, start_block)
        )
        tasks = (positions_task, swaps_task)
        try:
            positions, swaps = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return positions, swaps

    async def _price_index(self, operations: Sequence[Operation], now: int) -> PriceIndex:
        window = price_window(operations, now)
        # Nothing to value; the index still answers "now"
        start, end = window if window is not None else (now - 3600, now)

        points = await self.prices.get_price_series(
            self.chain.price_symbol, start, end, self.resolution
        )
        return PriceIndex(points, fallback_price=self.fallback_price)

    async def close(self) -> None:
        """Release the upstream HTTP clients."""
        await asyncio.gather(
            self.subgraph.close(),
            self.swap_history.explorer.close(),
            self.swap_history.rpc.close(),
            self.prices.client.close(),
        )
