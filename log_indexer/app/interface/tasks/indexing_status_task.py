from __future__ import annotations

from log_indexer.app.application.commands.get_status import GetStatusCommand
from log_indexer.app.application.dtos.indexing import IndexingStatusResponse
from log_indexer.app.interface.tasks.wiring import indexing_context


async def indexing_status_task(
    *,
    chain_id: int,
    backend: str = "sqlalchemy",
) -> IndexingStatusResponse:
    async with indexing_context(backend=backend) as ctx:
        command = GetStatusCommand(progress_store=ctx.stores.progress_store)
        return await command.execute(chain_id)
