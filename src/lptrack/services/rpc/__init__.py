"""JSON-RPC access and receipt event decoding."""

from lptrack.services.rpc.client import RpcClient
from lptrack.services.rpc.decoder import ORDER_RECORD_TOPIC, decode_order_records

__all__ = ["ORDER_RECORD_TOPIC", "RpcClient", "decode_order_records"]
