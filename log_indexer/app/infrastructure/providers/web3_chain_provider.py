from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

from aiohttp import ClientError
from web3 import AsyncWeb3
from web3.exceptions import BlockNotFound, Web3Exception

from log_indexer.app.application.services.log_normalizer import to_hex
from log_indexer.app.domain.errors import ProviderError
from log_indexer.app.domain.models import LogFilter
from log_indexer.app.domain.ports.out import ChainProvider, RawLog


logger = logging.getLogger(__name__)

# web3 v6 raises ValueError for JSON-RPC error payloads; v7 raises Web3RPCError.
_RPC_ERRORS = (Web3Exception, ClientError, asyncio.TimeoutError, ValueError)


def build_filter_params(log_filter: LogFilter) -> dict[str, Any]:
    """
    Convert a validated LogFilter into web3 ``FilterParams``.

    Omitted bounds are left to the node's default ("latest").
    """
    params: dict[str, Any] = {}
    if log_filter.from_block is not None:
        params["fromBlock"] = log_filter.from_block
    if log_filter.to_block is not None:
        params["toBlock"] = log_filter.to_block
    if log_filter.address is not None:
        try:
            params["address"] = AsyncWeb3.to_checksum_address(log_filter.address)
        except ValueError as exc:
            raise ProviderError("build_filter", f"invalid address {log_filter.address!r}") from exc

    topics = log_filter.topic_positions()
    if topics:
        params["topics"] = [
            list(selector) if isinstance(selector, (list, tuple)) else selector
            for selector in topics
        ]
    return params


class Web3ChainProvider(ChainProvider):
    """
    ChainProvider backed by AsyncWeb3 over HTTP(S) JSON-RPC.

    Uses eth_blockNumber, eth_getBlockByNumber (hash only) and eth_getLogs.
    Any transport or RPC failure is re-raised as ProviderError.
    """

    def __init__(self, *, w3: AsyncWeb3, rpc_url: str) -> None:
        self._w3 = w3
        self._rpc_url = rpc_url

    async def latest_block(self) -> int:
        try:
            return int(await self._w3.eth.get_block_number())
        except _RPC_ERRORS as exc:
            raise ProviderError("latest_block", f"{self._rpc_url}: {exc}") from exc

    async def get_block_hash(self, block_number: int) -> str:
        try:
            block = await self._w3.eth.get_block(block_number, full_transactions=False)
        except BlockNotFound as exc:
            raise ProviderError("get_block", f"block {block_number} not found") from exc
        except _RPC_ERRORS as exc:
            raise ProviderError("get_block", f"{self._rpc_url} block {block_number}: {exc}") from exc

        block_hash = block.get("hash") if block is not None else None
        if block_hash is None:
            raise ProviderError("get_block", f"block {block_number} has no hash")
        return to_hex(block_hash)

    async def get_logs(self, log_filter: LogFilter) -> Sequence[RawLog]:
        params = build_filter_params(log_filter)
        logger.debug("eth_getLogs %s params=%s", self._rpc_url, params)
        try:
            logs = await self._w3.eth.get_logs(params)
        except _RPC_ERRORS as exc:
            raise ProviderError(
                "get_logs",
                f"{self._rpc_url} blocks=[{log_filter.from_block}, {log_filter.to_block}]: {exc}",
            ) from exc
        return list(logs)
