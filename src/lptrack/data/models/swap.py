"""Swap-side models: explorer transactions and decoded swap records."""

from pydantic import BaseModel, ConfigDict, Field


class ExplorerTransaction(BaseModel):
    """One row of a block explorer ``txlist`` response.

    Field aliases match the explorer's JSON keys; numeric fields arrive as
    decimal strings.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    hash: str
    block_number: int = Field(alias="blockNumber")
    timestamp: int = Field(alias="timeStamp")
    from_address: str = Field(default="", alias="from")
    to_address: str = Field(default="", alias="to")
    function_name: str = Field(default="", alias="functionName")
    is_error: str = Field(default="0", alias="isError")
    receipt_status: str = Field(default="1", alias="txreceipt_status")
    gas_used: int = Field(default=0, alias="gasUsed")
    gas_price: int = Field(default=0, alias="gasPrice")

    @property
    def succeeded(self) -> bool:
        """True when the transaction executed without revert."""
        return self.is_error == "0" and self.receipt_status == "1"


class SwapRecord(BaseModel):
    """A decoded aggregator swap.

    ``from_amount`` and ``return_amount`` are raw integers encoded as strings.
    """

    model_config = ConfigDict(frozen=True)

    tx_hash: str
    block_number: int = 0
    log_index: int = 0
    timestamp: int = Field(ge=0)
    from_token: str
    to_token: str
    from_amount: str
    return_amount: str
    sender: str | None = None
    gas_used: int = 0
    gas_price: int = 0

    @property
    def record_id(self) -> str:
        """Identifier unique per decoded log."""
        return f"{self.tx_hash}:{self.log_index}"
