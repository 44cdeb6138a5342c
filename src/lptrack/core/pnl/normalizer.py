"""Event normalizer: raw swaps and positions to timeline operations.

Converts raw fixed-point token amounts to decimal units exactly once, maps
every token leg to its accounting role, and emits unordered operations.
Malformed records are skipped and reported, never fatal.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

import structlog

from lptrack.config.chains import AssetRole
from lptrack.core.exceptions import DecodeError
from lptrack.core.pnl.assets import AssetRegistry
from lptrack.data.models.common import ZERO
from lptrack.data.models.operation import Operation, OperationKind, SkippedRecord
from lptrack.data.models.position import Position, TokenInfo
from lptrack.data.models.swap import SwapRecord

log = structlog.get_logger(__name__)


class PartialWithdrawalPolicy(str, Enum):
    """Treatment of a position with withdrawals and remaining liquidity.

    CLOSED: any withdrawal closes the position (default).
    ACTIVE: the position stays active while it still holds liquidity.
    """

    CLOSED = "closed"
    ACTIVE = "active"


@dataclass
class NormalizationResult:
    """Operations produced from raw records, plus what was skipped."""

    operations: list[Operation] = field(default_factory=list)
    skipped: list[SkippedRecord] = field(default_factory=list)


def parse_raw_amount(value: str | int, record_id: str | None = None) -> int:
    """Parse a string-encoded raw integer amount.

    Raises:
        DecodeError: If the value is not a non-negative integer.
    """
    if isinstance(value, bool):
        raise DecodeError(f"Unparseable amount {value!r}", record_id=record_id)
    if isinstance(value, int):
        amount = value
    else:
        try:
            amount = int(str(value).strip())
        except ValueError as e:
            raise DecodeError(f"Unparseable amount {value!r}", record_id=record_id) from e
    if amount < 0:
        raise DecodeError(f"Negative amount {value!r}", record_id=record_id)
    return amount


def to_decimal(raw: int, decimals: int) -> Decimal:
    """Convert a raw fixed-point amount to decimal units."""
    if raw == 0:
        return ZERO
    return Decimal(raw).scaleb(-decimals)


@dataclass(frozen=True)
class PositionAmounts:
    """Decimal amounts of one position, per token index."""

    deposited0: Decimal
    deposited1: Decimal
    withdrawn0: Decimal
    withdrawn1: Decimal
    fees0: Decimal
    fees1: Decimal
    liquidity: int

    @property
    def has_deposit(self) -> bool:
        return self.deposited0 > 0 or self.deposited1 > 0

    @property
    def has_withdrawal(self) -> bool:
        return self.withdrawn0 > 0 or self.withdrawn1 > 0

    @property
    def has_exit_activity(self) -> bool:
        return self.has_withdrawal or self.fees0 > 0 or self.fees1 > 0


def read_position_amounts(position: Position) -> PositionAmounts:
    """Decode a position's raw amounts.

    Raises:
        DecodeError: If any amount is malformed.
    """

    def amount(raw: str, token: TokenInfo) -> Decimal:
        return to_decimal(parse_raw_amount(raw, record_id=position.id), token.decimals)

    return PositionAmounts(
        deposited0=amount(position.deposited_token0, position.token0),
        deposited1=amount(position.deposited_token1, position.token1),
        withdrawn0=amount(position.withdrawn_token0, position.token0),
        withdrawn1=amount(position.withdrawn_token1, position.token1),
        fees0=amount(position.collected_fees_token0, position.token0),
        fees1=amount(position.collected_fees_token1, position.token1),
        liquidity=parse_raw_amount(position.liquidity, record_id=position.id),
    )


def pair_amounts(
    registry: AssetRegistry, position: Position, amount0: Decimal, amount1: Decimal
) -> tuple[Decimal, Decimal]:
    """Map a token0 / token1 amount pair to (stable, volatile).

    Legs whose token is neither stable nor volatile count as zero.
    """
    stable = ZERO
    volatile = ZERO
    for token, amount in ((position.token0, amount0), (position.token1, amount1)):
        role = registry.role_of(token.address, token.symbol)
        if role == AssetRole.STABLE:
            stable += amount
        elif role == AssetRole.VOLATILE:
            volatile += amount
    return stable, volatile


def is_position_closed(
    amounts: PositionAmounts,
    policy: PartialWithdrawalPolicy = PartialWithdrawalPolicy.CLOSED,
) -> bool:
    """Classify a position as closed or active.

    A position without liquidity is closed. A position with liquidity is
    active, unless it has withdrawals and the policy is CLOSED.
    """
    if amounts.liquidity == 0:
        return True
    return policy == PartialWithdrawalPolicy.CLOSED and amounts.has_withdrawal


class EventNormalizer:
    """Builds unordered timeline operations from raw upstream records.

    Args:
        registry: Resolves token addresses to stable / volatile / other.
        policy: Partial-withdrawal classification policy.
        min_position_id: Positions with a lower numeric id are ignored.

    Example:
        normalizer = EventNormalizer(AssetRegistry(get_chain_config("bsc")))
        result = normalizer.normalize(swaps, positions, now=1_700_000_000)
        result.operations  # unordered
        result.skipped     # malformed records
    """

    def __init__(
        self,
        registry: AssetRegistry,
        policy: PartialWithdrawalPolicy = PartialWithdrawalPolicy.CLOSED,
        min_position_id: int | None = None,
    ) -> None:
        self.registry = registry
        self.policy = policy
        self.min_position_id = min_position_id

    def normalize(
        self,
        swaps: Iterable[SwapRecord],
        positions: Sequence[Position],
        now: int,
    ) -> NormalizationResult:
        """Normalize swaps and positions into operations.

        Args:
            swaps: Decoded swap records.
            positions: Positions of the same owner.
            now: Current time, used to anchor the last position's close.

        Returns:
            NormalizationResult with operations and skipped records.
        """
        result = NormalizationResult()

        for swap in swaps:
            try:
                result.operations.append(self.normalize_swap(swap))
            except DecodeError as e:
                self._skip(result, "swap", e)

        positions_result = self.normalize_positions(positions, now)
        result.operations.extend(positions_result.operations)
        result.skipped.extend(positions_result.skipped)

        log.info(
            "events_normalized",
            operations=len(result.operations),
            skipped=len(result.skipped),
        )
        return result

    def normalize_swap(self, swap: SwapRecord) -> Operation:
        """Convert one swap record.

        The from-leg is an outflow and the to-leg an inflow, each booked on
        the asset its token maps to. Untracked legs are dropped from the
        balances but the operation is still emitted.

        Raises:
            DecodeError: If an amount is malformed.
        """
        from_raw = parse_raw_amount(swap.from_amount, record_id=swap.record_id)
        to_raw = parse_raw_amount(swap.return_amount, record_id=swap.record_id)

        from_role = self.registry.role_of(swap.from_token)
        to_role = self.registry.role_of(swap.to_token)
        from_amount = to_decimal(from_raw, self.registry.decimals_of(swap.from_token))
        to_amount = to_decimal(to_raw, self.registry.decimals_of(swap.to_token))

        changes = {AssetRole.STABLE: ZERO, AssetRole.VOLATILE: ZERO}
        if from_role in changes:
            changes[from_role] -= from_amount
        if to_role in changes:
            changes[to_role] += to_amount

        return Operation(
            timestamp=swap.timestamp,
            kind=OperationKind.SWAP,
            description=self._describe_swap(swap, from_role, to_role, from_amount, to_amount),
            stable_change=changes[AssetRole.STABLE],
            volatile_change=changes[AssetRole.VOLATILE],
            details={
                "tx_hash": swap.tx_hash,
                "block_number": swap.block_number,
                "gas_used": swap.gas_used,
                "gas_price": swap.gas_price,
            },
        )

    def normalize_positions(
        self, positions: Sequence[Position], now: int
    ) -> NormalizationResult:
        """Emit open and close operations for positions.

        Close operations are anchored at the creation time of the next
        position (ascending by creation time), or ``now`` for the latest.
        """
        result = NormalizationResult()
        ordered = sorted(self.select_positions(positions), key=lambda p: p.created_at)

        for i, position in enumerate(ordered):
            close_at = ordered[i + 1].created_at if i + 1 < len(ordered) else now
            try:
                result.operations.extend(self._position_operations(position, close_at))
            except DecodeError as e:
                self._skip(result, "position", e)

        return result

    def _position_operations(self, position: Position, close_at: int) -> list[Operation]:
        amounts = read_position_amounts(position)
        operations: list[Operation] = []

        def pick(a0: Decimal, a1: Decimal) -> tuple[Decimal, Decimal]:
            return pair_amounts(self.registry, position, a0, a1)

        tick_range = [position.tick_lower, position.tick_upper]

        if amounts.has_deposit:
            dep_stable, dep_volatile = pick(amounts.deposited0, amounts.deposited1)
            operations.append(
                Operation(
                    timestamp=position.created_at,
                    kind=OperationKind.POSITION_OPEN,
                    description=(
                        f"OPEN LP #{position.id}: -{dep_stable} {self.registry.stable_symbol}, "
                        f"-{dep_volatile} {self.registry.volatile_symbol}"
                    ),
                    stable_change=-dep_stable,
                    volatile_change=-dep_volatile,
                    details={
                        "position_id": position.id,
                        "tx_hash": position.tx_hash,
                        "tick_range": tick_range,
                    },
                )
            )

        if amounts.has_exit_activity and is_position_closed(amounts, self.policy):
            wd_stable, wd_volatile = pick(amounts.withdrawn0, amounts.withdrawn1)
            fee_stable, fee_volatile = pick(amounts.fees0, amounts.fees1)
            operations.append(
                Operation(
                    timestamp=close_at,
                    kind=OperationKind.POSITION_CLOSE,
                    description=(
                        f"CLOSE LP #{position.id}: +{wd_stable + fee_stable} "
                        f"{self.registry.stable_symbol}, +{wd_volatile + fee_volatile} "
                        f"{self.registry.volatile_symbol} (fees: {fee_stable}/{fee_volatile})"
                    ),
                    stable_change=wd_stable + fee_stable,
                    volatile_change=wd_volatile + fee_volatile,
                    fee_stable=fee_stable,
                    fee_volatile=fee_volatile,
                    details={
                        "position_id": position.id,
                        "withdrawn_stable": str(wd_stable),
                        "withdrawn_volatile": str(wd_volatile),
                        "original_open_time": position.created_at,
                        "tick_range": tick_range,
                    },
                )
            )
        elif amounts.has_exit_activity:
            log.debug("position_partial_withdrawal_kept_active", position_id=position.id)

        return operations

    def select_positions(self, positions: Iterable[Position]) -> list[Position]:
        """Drop positions below ``min_position_id`` (non-numeric ids too)."""
        if self.min_position_id is None:
            return list(positions)
        return [
            p
            for p in positions
            if p.numeric_id is not None and p.numeric_id >= self.min_position_id
        ]

    def _describe_swap(
        self,
        swap: SwapRecord,
        from_role: AssetRole,
        to_role: AssetRole,
        from_amount: Decimal,
        to_amount: Decimal,
    ) -> str:
        stable = self.registry.stable_symbol
        volatile = self.registry.volatile_symbol
        if from_role == AssetRole.STABLE and to_role == AssetRole.VOLATILE:
            return f"BUY {volatile}: {from_amount} {stable} -> {to_amount} {volatile}"
        if from_role == AssetRole.VOLATILE and to_role == AssetRole.STABLE:
            return f"SELL {volatile}: {from_amount} {volatile} -> {to_amount} {stable}"
        return (
            f"SWAP {self.registry.symbol_of(swap.from_token)} -> "
            f"{self.registry.symbol_of(swap.to_token)}"
        )

    @staticmethod
    def _skip(result: NormalizationResult, source: str, error: DecodeError) -> None:
        log.warning(
            "record_skipped",
            source=source,
            record_id=error.record_id,
            reason=str(error),
        )
        result.skipped.append(
            SkippedRecord(source=source, record_id=error.record_id, reason=str(error))
        )
