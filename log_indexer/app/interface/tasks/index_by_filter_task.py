from __future__ import annotations

from log_indexer.app.application.commands.index_by_filter import IndexByFilterCommand
from log_indexer.app.application.dtos.indexing import IndexByFilterRequest, LogsResponse
from log_indexer.app.interface.tasks.wiring import indexing_context


async def index_by_filter_task(
    *,
    rpc_url: str,
    from_block: int | None = None,
    to_block: int | None = None,
    address: str | None = None,
    topics: list[str | list[str] | None] | None = None,
    event_signature: str | None = None,
    backend: str = "sqlalchemy",
) -> LogsResponse:
    """
    Ad-hoc indexing for an address/topic/event filter. Does not move checkpoints.
    """
    async with indexing_context(backend=backend) as ctx:
        command = IndexByFilterCommand(engine=ctx.engine)
        return await command.execute(
            IndexByFilterRequest(
                rpc_url=rpc_url,
                from_block=from_block,
                to_block=to_block,
                address=address,
                topics=topics,
                event_signature=event_signature,
            )
        )
