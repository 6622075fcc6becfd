from __future__ import annotations

from log_indexer.app.application.commands.index_range import IndexRangeCommand
from log_indexer.app.application.dtos.indexing import IndexRangeRequest, IndexRangeResponse
from log_indexer.app.interface.tasks.wiring import indexing_context


async def index_range_task(
    *,
    rpc_url: str,
    chain_id: int | None = None,
    from_block: int | None = None,
    to_block: int | None = None,
    backend: str = "sqlalchemy",
) -> IndexRangeResponse:
    """
    Indexes every log in [from_block, to_block] and advances the chain checkpoint.

    from_block defaults to the current chain tip, to_block to from_block.
    """
    async with indexing_context(backend=backend) as ctx:
        command = IndexRangeCommand(engine=ctx.engine)
        return await command.execute(
            IndexRangeRequest(
                rpc_url=rpc_url,
                from_block=from_block,
                to_block=to_block,
                chain_id=chain_id,
            )
        )
