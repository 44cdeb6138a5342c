"""Decoding of aggregator OrderRecord events from transaction receipts."""

from collections.abc import Callable
from typing import Any, Final

import structlog
from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_hash.auto import keccak

from lptrack.core.exceptions import DecodeError
from lptrack.data.models.swap import SwapRecord

log = structlog.get_logger(__name__)

ORDER_RECORD_SIGNATURE: Final[str] = "OrderRecord(address,address,address,uint256,uint256)"
ORDER_RECORD_TOPIC: Final[str] = "0x" + keccak(ORDER_RECORD_SIGNATURE.encode()).hex()
ORDER_RECORD_TYPES: Final[list[str]] = ["address", "address", "address", "uint256", "uint256"]


def _hex_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    return int(str(value), 16) if str(value).startswith("0x") else int(str(value))


def decode_order_records(
    receipt: dict[str, Any],
    timestamp: int,
    on_error: Callable[[DecodeError], None] | None = None,
) -> list[SwapRecord]:
    """Decode every OrderRecord log of a receipt into swap records.

    Args:
        receipt: ``eth_getTransactionReceipt`` result.
        timestamp: Block time of the transaction (receipts carry none).
        on_error: Called with the DecodeError of each undecodable log. When
            omitted the first such error is raised.

    Returns:
        One SwapRecord per decoded log, in log order.

    Raises:
        DecodeError: If a matching log fails to decode and no ``on_error``
            is given, or if the receipt itself is malformed.
    """
    tx_hash = receipt.get("transactionHash", "")
    try:
        block_number = _hex_int(receipt.get("blockNumber"))
        gas_used = _hex_int(receipt.get("gasUsed"))
        gas_price = _hex_int(receipt.get("effectiveGasPrice"))
    except ValueError as e:
        raise DecodeError(f"Malformed receipt header: {e}", record_id=tx_hash) from e

    records: list[SwapRecord] = []
    for position, entry in enumerate(receipt.get("logs") or []):
        topics = entry.get("topics") or []
        if not topics or str(topics[0]).lower() != ORDER_RECORD_TOPIC:
            continue

        log_index = entry.get("logIndex")
        record_id = f"{tx_hash}:{log_index if log_index is not None else position}"
        try:
            data = bytes.fromhex(str(entry.get("data", "")).removeprefix("0x"))
            from_token, to_token, sender, from_amount, return_amount = decode(
                ORDER_RECORD_TYPES, data
            )
            records.append(
                SwapRecord(
                    tx_hash=tx_hash,
                    block_number=block_number,
                    log_index=_hex_int(log_index, default=position),
                    timestamp=timestamp,
                    from_token=from_token.lower(),
                    to_token=to_token.lower(),
                    from_amount=str(from_amount),
                    return_amount=str(return_amount),
                    sender=sender.lower(),
                    gas_used=gas_used,
                    gas_price=gas_price,
                )
            )
        except (DecodingError, ValueError) as e:
            error = DecodeError(f"OrderRecord decode failed: {e}", record_id=record_id)
            if on_error is None:
                raise error from e
            on_error(error)

    log.debug("order_records_decoded", tx_hash=tx_hash, count=len(records))
    return records
