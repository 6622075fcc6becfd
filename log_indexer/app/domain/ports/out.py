from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol, Sequence
from uuid import UUID

from log_indexer.app.domain.models import IndexingProgress, LogFilter, LogRecord


RawLog = Mapping[str, Any]


class ChainProvider(Protocol):
    """
    Port over an EVM JSON-RPC endpoint.

    Raw logs are returned in the provider's native shape (web3 ``LogReceipt``
    style mappings: ``blockNumber``, ``transactionHash``, ``transactionIndex``,
    ``logIndex``, ``address``, ``data``, ``topics``, optional ``removed``).
    Conversion into ``LogRecord`` happens in the application layer.

    Every failure must surface as ``ProviderError``.
    """

    async def latest_block(self) -> int: ...

    async def get_block_hash(self, block_number: int) -> str: ...

    async def get_logs(self, log_filter: LogFilter) -> Sequence[RawLog]: ...


ChainProviderFactory = Callable[[str], ChainProvider]


class LogStore(Protocol):
    """
    Port for persisting normalized log records.

    Writes are all-or-nothing per batch and idempotent on
    (block_number, log_index, transaction_hash). Failures surface as
    ``PersistenceError``.
    """

    async def create_logs_batch(self, records: Sequence[LogRecord]) -> list[UUID]:
        """Persist records; return ids of rows that were newly inserted."""
        ...

    async def get_logs_by_filter(self, log_filter: LogFilter) -> list[LogRecord]: ...

    async def get_logs_by_address(
        self,
        address: str,
        limit: int | None = None,
    ) -> list[LogRecord]: ...

    async def get_logs_by_block_range(
        self,
        from_block: int,
        to_block: int,
    ) -> list[LogRecord]: ...

    async def get_latest_logs(self, limit: int) -> list[LogRecord]: ...


class ProgressStore(Protocol):
    """
    Port for per-chain indexing checkpoints (one row per chain_id).
    """

    async def get_progress(self, chain_id: int) -> IndexingProgress | None: ...

    async def save_progress(
        self,
        *,
        chain_id: int,
        last_indexed_block: int,
        rpc_url: str,
        expected_last_block: int | None,
    ) -> IndexingProgress:
        """
        Compare-and-set write of the checkpoint.

        Inserts when ``expected_last_block`` is None and no row exists,
        updates when the stored block equals ``expected_last_block``,
        raises ``ProgressConflictError`` otherwise (including an
        expectation with no stored row). Always leaves
        status=ok with a cleared error message.
        """
        ...

    async def set_error(self, chain_id: int, error_message: str) -> None:
        """Mark an existing row as failed; raises ``ProgressNotFound`` if absent."""
        ...
