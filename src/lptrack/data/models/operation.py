"""Timeline models: price samples, operations and skipped records."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from lptrack.data.models.common import ZERO, Amount


class PricePoint(BaseModel):
    """One sample of the reference price series."""

    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(ge=0, description="Sample time (seconds)")
    price: Amount = Field(description="Volatile asset price in stable terms")


class OperationKind(str, Enum):
    """Kind of ledger entry."""

    SWAP = "SWAP"
    POSITION_OPEN = "POSITION_OPEN"
    POSITION_CLOSE = "POSITION_CLOSE"


class Operation(BaseModel):
    """One ledger entry of the PnL timeline.

    The normalizer fills the event fields. The cumulative and valuation
    fields are only ever set by the timeline builder, as a function of the
    ordered prefix of operations ending here.

    Attributes:
        timestamp: Economic effective time (seconds). Position closes are
            anchored at the next position's creation time.
        kind: Ledger entry kind.
        description: Human-readable summary.
        stable_change: Signed stable delta (negative = outflow).
        volatile_change: Signed volatile delta (negative = outflow).
        fee_stable: Fee part of ``stable_change`` (close operations only).
        fee_volatile: Fee part of ``volatile_change`` (close operations only).
        details: Opaque payload (tx hash, gas, position id, ticks).
    """

    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(ge=0)
    kind: OperationKind
    description: str = ""
    stable_change: Amount = ZERO
    volatile_change: Amount = ZERO
    fee_stable: Amount = ZERO
    fee_volatile: Amount = ZERO
    details: dict[str, Any] = Field(default_factory=dict)

    # Derived by the timeline builder
    cumulative_stable: Amount = ZERO
    cumulative_volatile: Amount = ZERO
    reference_price: Amount | None = None
    total_usd_value: Amount | None = None
    cumulative_fees_stable: Amount = ZERO
    cumulative_fees_volatile: Amount = ZERO
    cumulative_fees_usd: Amount = ZERO


class SkippedRecord(BaseModel):
    """A raw record dropped because it could not be decoded."""

    source: str = Field(description="swap, position or receipt")
    record_id: str | None = None
    reason: str
