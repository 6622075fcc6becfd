"""Unit tests for the web3-backed ChainProvider."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import ClientError
from web3.exceptions import BlockNotFound

from log_indexer.app.domain.errors import ProviderError
from log_indexer.app.domain.models import LogFilter
from log_indexer.app.infrastructure.providers.web3_chain_provider import (
    Web3ChainProvider,
    build_filter_params,
)


RPC_URL = "http://localhost:8545"
TRANSFER = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"


def _provider(**eth_methods):
    w3 = MagicMock()
    for name, mock in eth_methods.items():
        setattr(w3.eth, name, mock)
    return Web3ChainProvider(w3=w3, rpc_url=RPC_URL), w3


class TestBuildFilterParams:
    def test_empty_filter_has_no_params(self):
        assert build_filter_params(LogFilter()) == {}

    def test_address_is_checksummed(self):
        params = build_filter_params(
            LogFilter(from_block=1, to_block=2, address="0xd8da6bf26964af9d7eed9e03e53415d37aa96045")
        )

        assert params == {
            "fromBlock": 1,
            "toBlock": 2,
            "address": "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045",
        }

    def test_topics_keep_positions_and_or_lists(self):
        other = "0x" + "ab" * 32
        params = build_filter_params(LogFilter(topics=(None, (TRANSFER, other))))

        assert params["topics"] == [None, [TRANSFER, other]]

    def test_event_signature_becomes_topic0(self):
        params = build_filter_params(LogFilter(event_signature="Transfer(address,address,uint256)"))

        assert params["topics"] == [TRANSFER]


class TestWeb3ChainProvider:
    @pytest.mark.asyncio
    async def test_latest_block(self):
        provider, _ = _provider(get_block_number=AsyncMock(return_value=19_000_000))

        assert await provider.latest_block() == 19_000_000

    @pytest.mark.asyncio
    async def test_transport_failure_becomes_provider_error(self):
        provider, _ = _provider(get_block_number=AsyncMock(side_effect=ClientError("refused")))

        with pytest.raises(ProviderError) as exc_info:
            await provider.latest_block()

        assert exc_info.value.operation == "latest_block"

    @pytest.mark.asyncio
    async def test_block_hash_bytes_are_hex_encoded(self):
        provider, w3 = _provider(get_block=AsyncMock(return_value={"hash": b"\xab" * 32, "number": 7}))

        assert await provider.get_block_hash(7) == "0x" + "ab" * 32
        w3.eth.get_block.assert_awaited_once_with(7, full_transactions=False)

    @pytest.mark.asyncio
    async def test_missing_block_is_a_provider_error(self):
        provider, _ = _provider(get_block=AsyncMock(side_effect=BlockNotFound("no block")))

        with pytest.raises(ProviderError):
            await provider.get_block_hash(7)

    @pytest.mark.asyncio
    async def test_block_without_hash_is_a_provider_error(self):
        provider, _ = _provider(get_block=AsyncMock(return_value={"number": 7}))

        with pytest.raises(ProviderError):
            await provider.get_block_hash(7)

    @pytest.mark.asyncio
    async def test_get_logs_passes_filter_params(self):
        raw = {"blockNumber": 5, "logIndex": 0}
        provider, w3 = _provider(get_logs=AsyncMock(return_value=(raw,)))

        logs = await provider.get_logs(LogFilter(from_block=5, to_block=5))

        assert logs == [raw]
        w3.eth.get_logs.assert_awaited_once_with({"fromBlock": 5, "toBlock": 5})

    @pytest.mark.asyncio
    async def test_rpc_error_payload_becomes_provider_error(self):
        provider, _ = _provider(
            get_logs=AsyncMock(side_effect=ValueError({"code": -32005, "message": "too many results"}))
        )

        with pytest.raises(ProviderError) as exc_info:
            await provider.get_logs(LogFilter(from_block=1, to_block=10_000))

        assert exc_info.value.operation == "get_logs"
