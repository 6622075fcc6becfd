from __future__ import annotations

from log_indexer.app.application.dtos.indexing import IndexingStatusResponse
from log_indexer.app.domain.models import IndexingStatus
from log_indexer.app.domain.ports.out import ProgressStore


class GetStatusCommand:
    """
    Report the checkpoint of a chain.

    A chain that was never indexed is a normal state and is reported as
    ``not_started`` with ``success=False`` instead of an error.
    """

    def __init__(self, *, progress_store: ProgressStore) -> None:
        self._progress_store = progress_store

    async def execute(self, chain_id: int) -> IndexingStatusResponse:
        progress = await self._progress_store.get_progress(chain_id)
        if progress is None:
            return IndexingStatusResponse(
                chain_id=chain_id,
                last_indexed_block=0,
                status=IndexingStatus.NOT_STARTED,
                error_message=None,
                success=False,
            )

        return IndexingStatusResponse(
            chain_id=progress.chain_id,
            last_indexed_block=progress.last_indexed_block,
            status=progress.status,
            error_message=progress.error_message,
            success=True,
        )
