from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Sequence

from log_indexer.app.application.services.log_normalizer import normalize_log, raw_block_number
from log_indexer.app.domain.errors import IndexerError, ProgressConflictError, ProgressNotFound
from log_indexer.app.domain.models import BlockRange, LogFilter, LogRecord
from log_indexer.app.domain.ports.out import (
    ChainProvider,
    ChainProviderFactory,
    LogStore,
    ProgressStore,
    RawLog,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexingResult:
    indexed_count: int
    inserted_count: int
    from_block: int
    to_block: int


@dataclass(frozen=True)
class FilterIndexingResult:
    indexed_count: int
    log_filter: LogFilter
    logs: list[LogRecord] = field(default_factory=list)


class IndexingEngine:
    """
    Orchestrates ChainProvider + LogStore + ProgressStore.

    One pass = fetch logs -> resolve block hashes -> normalize -> persist
    the batch -> (range mode with chain_id) advance the checkpoint. The
    checkpoint only moves after the batch is durably stored; a failed pass
    leaves it where it was so a retry resumes from the same block.

    Range passes for the same chain_id are serialized by a per-chain lock
    held by this instance; the task wiring builds one engine per run, so
    separate runs (and processes) are guarded only by the store's
    compare-and-set on the checkpoint.
    """

    def __init__(
        self,
        *,
        provider_factory: ChainProviderFactory,
        log_store: LogStore,
        progress_store: ProgressStore,
    ) -> None:
        self._provider_factory = provider_factory
        self._log_store = log_store
        self._progress_store = progress_store
        self._chain_locks: defaultdict[int, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def get_latest_block(self, rpc_url: str) -> int:
        provider = self._provider_factory(rpc_url)
        return await provider.latest_block()

    async def index_logs(
        self,
        *,
        rpc_url: str,
        from_block: int | None = None,
        to_block: int | None = None,
        chain_id: int | None = None,
    ) -> IndexingResult:
        if chain_id is None:
            return await self._index_range(
                rpc_url=rpc_url,
                from_block=from_block,
                to_block=to_block,
                chain_id=None,
            )

        async with self._chain_locks[chain_id]:
            return await self._index_range(
                rpc_url=rpc_url,
                from_block=from_block,
                to_block=to_block,
                chain_id=chain_id,
            )

    async def index_logs_by_filter(
        self,
        *,
        rpc_url: str,
        log_filter: LogFilter,
    ) -> FilterIndexingResult:
        """
        Ad-hoc scan driven by a caller filter. Never touches progress.

        Returns the records re-read from the store for the resolved filter,
        not the in-memory batch.
        """
        provider = self._provider_factory(rpc_url)
        block_range = await self._resolve_filter_range(
            provider,
            from_block=log_filter.from_block,
            to_block=log_filter.to_block,
        )
        resolved = log_filter.with_range(block_range.from_block, block_range.to_block)
        resolved.validate()

        logger.info(
            "Indexing logs by filter: blocks=[%s, %s], address=%s, topics=%s",
            block_range.from_block,
            block_range.to_block,
            resolved.address,
            resolved.topic_positions(),
        )

        records, inserted = await self._ingest(provider, resolved)
        logs = await self._log_store.get_logs_by_filter(resolved)

        logger.info(
            "Finished filter indexing: indexed=%s, inserted=%s, matched=%s",
            len(records),
            inserted,
            len(logs),
        )
        return FilterIndexingResult(indexed_count=len(records), log_filter=resolved, logs=logs)

    async def _index_range(
        self,
        *,
        rpc_url: str,
        from_block: int | None,
        to_block: int | None,
        chain_id: int | None,
    ) -> IndexingResult:
        provider = self._provider_factory(rpc_url)
        block_range = await self._resolve_range(provider, from_block=from_block, to_block=to_block)

        previous = None
        if chain_id is not None:
            previous = await self._progress_store.get_progress(chain_id)

        logger.info(
            "Indexing logs: chain_id=%s, blocks=[%s, %s], checkpoint=%s",
            chain_id,
            block_range.from_block,
            block_range.to_block,
            previous.last_indexed_block if previous else None,
        )

        try:
            records, inserted = await self._ingest(
                provider,
                LogFilter(from_block=block_range.from_block, to_block=block_range.to_block),
            )

            if records and chain_id is not None:
                expected = previous.last_indexed_block if previous else None
                checkpoint = max(expected or 0, block_range.to_block)
                await self._progress_store.save_progress(
                    chain_id=chain_id,
                    last_indexed_block=checkpoint,
                    rpc_url=rpc_url,
                    expected_last_block=expected,
                )
                logger.info("Checkpoint advanced: chain_id=%s, last_indexed_block=%s", chain_id, checkpoint)
        except IndexerError as exc:
            logger.error(
                "Indexing pass failed: chain_id=%s, blocks=[%s, %s]: %s",
                chain_id,
                block_range.from_block,
                block_range.to_block,
                exc,
            )
            if chain_id is not None and not isinstance(exc, ProgressConflictError):
                await self._record_failure(chain_id, str(exc))
            raise

        logger.info(
            "Finished indexing logs: chain_id=%s, blocks=[%s, %s], indexed=%s, inserted=%s",
            chain_id,
            block_range.from_block,
            block_range.to_block,
            len(records),
            inserted,
        )
        return IndexingResult(
            indexed_count=len(records),
            inserted_count=inserted,
            from_block=block_range.from_block,
            to_block=block_range.to_block,
        )

    async def _resolve_range(
        self,
        provider: ChainProvider,
        *,
        from_block: int | None,
        to_block: int | None,
    ) -> BlockRange:
        # Unbounded default is the current tip only, never genesis.
        if from_block is None:
            from_block = await provider.latest_block()
        if to_block is None:
            to_block = from_block

        block_range = BlockRange(from_block=from_block, to_block=to_block)
        block_range.validate()
        return block_range

    async def _resolve_filter_range(
        self,
        provider: ChainProvider,
        *,
        from_block: int | None,
        to_block: int | None,
    ) -> BlockRange:
        # An open upper bound runs to the tip, as eth_getLogs does.
        if from_block is None or to_block is None:
            latest = await provider.latest_block()
            from_block = latest if from_block is None else from_block
            to_block = latest if to_block is None else to_block

        block_range = BlockRange(from_block=from_block, to_block=to_block)
        block_range.validate()
        return block_range

    async def _ingest(
        self,
        provider: ChainProvider,
        log_filter: LogFilter,
    ) -> tuple[list[LogRecord], int]:
        raw_logs = await provider.get_logs(log_filter)
        if not raw_logs:
            logger.debug("No logs returned for blocks=[%s, %s]", log_filter.from_block, log_filter.to_block)
            return [], 0

        block_hashes = await self._resolve_block_hashes(provider, raw_logs)
        records = [
            normalize_log(raw, block_hash=block_hashes[raw_block_number(raw)])
            for raw in raw_logs
        ]

        inserted_ids = await self._log_store.create_logs_batch(records)
        logger.debug(
            "Batch persisted: logs=%s, inserted=%s, duplicates=%s",
            len(records),
            len(inserted_ids),
            len(records) - len(inserted_ids),
        )
        return records, len(inserted_ids)

    async def _resolve_block_hashes(
        self,
        provider: ChainProvider,
        raw_logs: Sequence[RawLog],
    ) -> dict[int, str]:
        hashes: dict[int, str] = {}
        for raw in raw_logs:
            number = raw_block_number(raw)
            if number not in hashes:
                hashes[number] = await provider.get_block_hash(number)
        return hashes

    async def _record_failure(self, chain_id: int, message: str) -> None:
        try:
            await self._progress_store.set_error(chain_id, message)
        except ProgressNotFound:
            # Progress rows are only created by a successful pass.
            logger.debug("No progress row to flag for chain_id=%s", chain_id)
        except IndexerError:
            logger.warning("Could not record failure for chain_id=%s", chain_id, exc_info=True)
