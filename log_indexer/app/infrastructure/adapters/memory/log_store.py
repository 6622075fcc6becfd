from __future__ import annotations

from typing import Sequence
from uuid import UUID

from log_indexer.app.domain.models import LogFilter, LogRecord


def _matches(record: LogRecord, log_filter: LogFilter) -> bool:
    if log_filter.from_block is not None and record.block_number < log_filter.from_block:
        return False
    if log_filter.to_block is not None and record.block_number > log_filter.to_block:
        return False
    if log_filter.address is not None and record.address.lower() != log_filter.address.lower():
        return False

    for position, selector in enumerate(log_filter.topic_positions()):
        if selector is None:
            continue
        if position >= len(record.topics):
            return False
        values = [selector] if isinstance(selector, str) else selector
        if record.topics[position].lower() not in {v.lower() for v in values}:
            return False
    return True


def _ascending(record: LogRecord) -> tuple[int, int]:
    return (record.block_number, record.log_index)


class InMemoryLogStore:
    """
    Dict-backed LogStore for tests and dry runs.

    Same contract as the PostgreSQL store: batches are all-or-nothing and
    records are unique on (block_number, log_index, transaction_hash).
    """

    def __init__(self) -> None:
        self._records: dict[tuple[int, int, str], LogRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def create_logs_batch(self, records: Sequence[LogRecord]) -> list[UUID]:
        staged: dict[tuple[int, int, str], LogRecord] = {}
        for record in records:
            key = record.natural_key
            if key not in self._records and key not in staged:
                staged[key] = record

        self._records.update(staged)
        return [record.id for record in staged.values()]

    async def get_logs_by_filter(self, log_filter: LogFilter) -> list[LogRecord]:
        return sorted(
            (r for r in self._records.values() if _matches(r, log_filter)),
            key=_ascending,
        )

    async def get_logs_by_address(
        self,
        address: str,
        limit: int | None = None,
    ) -> list[LogRecord]:
        matched = [r for r in self._records.values() if r.address.lower() == address.lower()]
        matched.sort(key=_ascending, reverse=True)
        return matched[: limit if limit is not None else 100]

    async def get_logs_by_block_range(
        self,
        from_block: int,
        to_block: int,
    ) -> list[LogRecord]:
        return await self.get_logs_by_filter(LogFilter(from_block=from_block, to_block=to_block))

    async def get_latest_logs(self, limit: int) -> list[LogRecord]:
        return sorted(self._records.values(), key=_ascending, reverse=True)[:limit]
