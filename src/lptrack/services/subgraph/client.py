"""Uniswap v3 subgraph client for liquidity positions.

The subgraph reports token amounts as decimal-adjusted BigDecimal strings.
They are converted back to raw integer strings here so every upstream
source hands the PnL engine the same fixed-point representation.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

import structlog
from pydantic import ValidationError

from lptrack.core.exceptions import UpstreamFetchError
from lptrack.data.models.position import Position, TokenInfo
from lptrack.services.base import BaseAPIClient

log = structlog.get_logger(__name__)

POSITIONS_QUERY = """
query GetPositions($first: Int, $skip: Int, $orderBy: String, $orderDirection: String, $whereOwner: String) {
  positions(
    first: $first
    skip: $skip
    orderBy: $orderBy
    orderDirection: $orderDirection
    where: { owner: $whereOwner }
  ) {
    id
    owner
    pool {
      id
      tick
      token0 { id symbol name decimals }
      token1 { id symbol name decimals }
    }
    tickLower { tickIdx }
    tickUpper { tickIdx }
    liquidity
    depositedToken0
    depositedToken1
    withdrawnToken0
    withdrawnToken1
    collectedFeesToken0
    collectedFeesToken1
    transaction { id timestamp }
  }
}
"""

AMOUNT_FIELDS = {
    "depositedToken0": ("deposited_token0", "token0"),
    "depositedToken1": ("deposited_token1", "token1"),
    "withdrawnToken0": ("withdrawn_token0", "token0"),
    "withdrawnToken1": ("withdrawn_token1", "token1"),
    "collectedFeesToken0": ("collected_fees_token0", "token0"),
    "collectedFeesToken1": ("collected_fees_token1", "token1"),
}


def to_raw_amount(value: Any, decimals: int) -> str:
    """Convert a decimal-adjusted amount to a raw integer string.

    Unparseable values are passed through unchanged so the normalizer can
    report the record instead of the whole fetch failing.
    """
    try:
        raw = Decimal(str(value)).scaleb(decimals).to_integral_value()
        return str(int(raw))
    except (InvalidOperation, ValueError, OverflowError):
        return str(value)


class SubgraphClient(BaseAPIClient):
    """GraphQL client for the positions of one owner.

    Example:
        client = SubgraphClient(url=settings.subgraph_url, api_key="...")
        try:
            positions = await client.fetch_positions("0xabc...")
        finally:
            await client.close()
    """

    def __init__(
        self,
        url: str,
        api_key: str = "",
        page_size: int = 1000,
        timeout: float = 30.0,
        circuit_breaker_threshold: int = 5,
        circuit_breaker_cooldown: int = 30,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        super().__init__(
            service="subgraph",
            base_url=url,
            timeout=timeout,
            headers=headers,
            circuit_breaker_threshold=circuit_breaker_threshold,
            circuit_breaker_cooldown=circuit_breaker_cooldown,
        )
        self.page_size = page_size

    async def fetch_positions(self, owner: str) -> list[Position]:
        """Fetch every position of ``owner``, paging until a short page.

        Raises:
            UpstreamFetchError: On transport errors, GraphQL errors or a
                malformed response.
        """
        positions: list[Position] = []
        skip = 0

        while True:
            rows = await self._query_page(owner.lower(), skip)
            positions.extend(self._parse_position(row) for row in rows)
            log.debug("subgraph_page_fetched", owner=owner, skip=skip, count=len(rows))

            if len(rows) < self.page_size:
                break
            skip += self.page_size

        log.info("subgraph_positions_fetched", owner=owner, count=len(positions))
        return positions

    async def _query_page(self, owner: str, skip: int) -> list[dict[str, Any]]:
        payload = {
            "query": POSITIONS_QUERY,
            "variables": {
                "first": self.page_size,
                "skip": skip,
                "orderBy": "id",
                "orderDirection": "desc",
                "whereOwner": owner,
            },
        }
        response = await self.post(self.base_url, json=payload)
        body = self._json(response)

        if not isinstance(body, dict):
            raise UpstreamFetchError(service=self.service, message="Unexpected response shape")
        if body.get("errors"):
            raise UpstreamFetchError(
                service=self.service, message=f"GraphQL errors: {body['errors']}"
            )

        rows = (body.get("data") or {}).get("positions")
        if not isinstance(rows, list):
            raise UpstreamFetchError(service=self.service, message="Missing positions in response")
        return rows

    def _parse_position(self, row: dict[str, Any]) -> Position:
        try:
            pool = row["pool"]
            token0 = TokenInfo(
                address=pool["token0"]["id"],
                symbol=pool["token0"].get("symbol") or "",
                decimals=int(pool["token0"]["decimals"]),
            )
            token1 = TokenInfo(
                address=pool["token1"]["id"],
                symbol=pool["token1"].get("symbol") or "",
                decimals=int(pool["token1"]["decimals"]),
            )
            tokens = {"token0": token0, "token1": token1}
            amounts = {
                name: to_raw_amount(row.get(key, "0"), tokens[token].decimals)
                for key, (name, token) in AMOUNT_FIELDS.items()
            }
            pool_tick = pool.get("tick")

            return Position(
                id=str(row["id"]),
                owner=row.get("owner", ""),
                created_at=int(row["transaction"]["timestamp"]),
                tx_hash=row["transaction"].get("id"),
                pool_id=pool.get("id", ""),
                token0=token0,
                token1=token1,
                tick_lower=int(row["tickLower"]["tickIdx"]),
                tick_upper=int(row["tickUpper"]["tickIdx"]),
                pool_tick=int(pool_tick) if pool_tick is not None else None,
                liquidity=str(row.get("liquidity", "0")),
                **amounts,
            )
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            log.error("subgraph_position_malformed", position_id=row.get("id"), error=str(e))
            raise UpstreamFetchError(
                service=self.service,
                message=f"Malformed position {row.get('id')}: {e}",
            ) from e
