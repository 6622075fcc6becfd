from __future__ import annotations

from log_indexer.app.application.dtos.indexing import IndexRangeRequest, IndexRangeResponse
from log_indexer.app.application.services.indexing_engine import IndexingEngine


class IndexRangeCommand:
    """Range-mode indexing: resumable, advances the chain checkpoint."""

    def __init__(self, *, engine: IndexingEngine) -> None:
        self._engine = engine

    async def execute(self, request: IndexRangeRequest) -> IndexRangeResponse:
        result = await self._engine.index_logs(
            rpc_url=request.rpc_url,
            from_block=request.from_block,
            to_block=request.to_block,
            chain_id=request.chain_id,
        )
        return IndexRangeResponse(
            indexed_count=result.indexed_count,
            from_block=result.from_block,
            to_block=result.to_block,
            success=True,
            message=f"Successfully indexed {result.indexed_count} logs",
        )
