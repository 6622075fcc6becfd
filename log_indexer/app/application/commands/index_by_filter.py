from __future__ import annotations

from log_indexer.app.application.dtos.indexing import (
    IndexByFilterRequest,
    LogRecordResponse,
    LogsResponse,
)
from log_indexer.app.application.services.indexing_engine import IndexingEngine
from log_indexer.app.domain.models import LogFilter


class IndexByFilterCommand:
    def __init__(self, *, engine: IndexingEngine) -> None:
        self._engine = engine

    async def execute(self, request: IndexByFilterRequest) -> LogsResponse:
        log_filter = LogFilter(
            from_block=request.from_block,
            to_block=request.to_block,
            address=request.address,
            topics=tuple(request.topics) if request.topics is not None else None,
            event_signature=request.event_signature,
        )
        log_filter.validate()

        result = await self._engine.index_logs_by_filter(
            rpc_url=request.rpc_url,
            log_filter=log_filter,
        )
        return LogsResponse(
            logs=[LogRecordResponse.model_validate(record) for record in result.logs],
            total_count=result.indexed_count,
            success=True,
        )
