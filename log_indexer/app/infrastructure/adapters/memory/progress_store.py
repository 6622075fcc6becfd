from __future__ import annotations

from dataclasses import replace
from uuid import uuid4

from log_indexer.app.domain.errors import ProgressConflictError, ProgressNotFound
from log_indexer.app.domain.models import IndexingProgress, IndexingStatus, utc_now


class InMemoryProgressStore:
    """Dict-backed ProgressStore with the same compare-and-set rules as PostgreSQL."""

    def __init__(self) -> None:
        self._rows: dict[int, IndexingProgress] = {}

    async def get_progress(self, chain_id: int) -> IndexingProgress | None:
        return self._rows.get(chain_id)

    async def save_progress(
        self,
        *,
        chain_id: int,
        last_indexed_block: int,
        rpc_url: str,
        expected_last_block: int | None,
    ) -> IndexingProgress:
        current = self._rows.get(chain_id)
        now = utc_now()

        if current is None:
            if expected_last_block is not None:
                raise ProgressConflictError(chain_id, expected_last_block, None)
            progress = IndexingProgress(
                id=uuid4(),
                chain_id=chain_id,
                last_indexed_block=last_indexed_block,
                rpc_url=rpc_url,
                status=IndexingStatus.OK,
                error_message=None,
                created_at=now,
                updated_at=now,
            )
        elif current.last_indexed_block != expected_last_block:
            raise ProgressConflictError(chain_id, expected_last_block, current.last_indexed_block)
        else:
            progress = replace(
                current,
                last_indexed_block=last_indexed_block,
                rpc_url=rpc_url,
                status=IndexingStatus.OK,
                error_message=None,
                updated_at=now,
            )

        self._rows[chain_id] = progress
        return progress

    async def set_error(self, chain_id: int, error_message: str) -> None:
        current = self._rows.get(chain_id)
        if current is None:
            raise ProgressNotFound(chain_id)
        self._rows[chain_id] = replace(
            current,
            status=IndexingStatus.ERROR,
            error_message=error_message,
            updated_at=utc_now(),
        )
