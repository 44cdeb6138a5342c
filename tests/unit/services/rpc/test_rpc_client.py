"""Tests for RpcClient with respx mocking."""

import json

import pytest
import respx
from httpx import Response

from lptrack.core.exceptions import UpstreamFetchError
from lptrack.services.rpc.client import RpcClient

RPC_URL = "https://rpc.example.org"
TX_HASH = "0x" + "ab" * 32


class TestRpcCall:
    """Tests for raw JSON-RPC calls."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_call_returns_result(self) -> None:
        route = respx.post(RPC_URL).mock(
            return_value=Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x38"})
        )
        client = RpcClient(url=RPC_URL)

        result = await client.call("eth_chainId", [])

        assert result == "0x38"
        body = json.loads(route.calls[0].request.content)
        assert body["method"] == "eth_chainId"
        assert body["jsonrpc"] == "2.0"

    @pytest.mark.asyncio
    @respx.mock
    async def test_json_rpc_error(self) -> None:
        """
        Given: The node answers with a JSON-RPC error object
        When: call() is made
        Then: UpstreamFetchError carries the node's message
        """
        respx.post(RPC_URL).mock(
            return_value=Response(
                200,
                json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "header not found"}},
            )
        )
        client = RpcClient(url=RPC_URL)

        with pytest.raises(UpstreamFetchError) as exc_info:
            await client.call("eth_getTransactionReceipt", [TX_HASH])

        assert "header not found" in str(exc_info.value)
        assert exc_info.value.service == "rpc"


class TestTransactionReceipt:
    """Tests for receipt lookups and caching."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_receipt_cached(self) -> None:
        """
        Given: A receipt fetched once
        When: The same hash is requested again in upper case
        Then: The node is only queried once
        """
        receipt = {"transactionHash": TX_HASH, "logs": []}
        route = respx.post(RPC_URL).mock(
            return_value=Response(200, json={"jsonrpc": "2.0", "id": 1, "result": receipt})
        )
        client = RpcClient(url=RPC_URL)

        first = await client.get_transaction_receipt(TX_HASH)
        second = await client.get_transaction_receipt(TX_HASH.upper().replace("0X", "0x"))

        assert first == receipt
        assert second == receipt
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_receipt(self) -> None:
        route = respx.post(RPC_URL).mock(
            return_value=Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None})
        )
        client = RpcClient(url=RPC_URL)

        assert await client.get_transaction_receipt(TX_HASH) is None
        assert await client.get_transaction_receipt(TX_HASH) is None
        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_receipt(self) -> None:
        respx.post(RPC_URL).mock(
            return_value=Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0xdead"})
        )
        client = RpcClient(url=RPC_URL)

        with pytest.raises(UpstreamFetchError):
            await client.get_transaction_receipt(TX_HASH)
