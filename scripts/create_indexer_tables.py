import asyncio

from sqlalchemy import text

from log_indexer.app.infrastructure.db.db_base import INDEXER_SCHEMA, BaseDB
from log_indexer.app.infrastructure.db.engine import create_app_async_engine

# Registers the tables on BaseDB.metadata
from log_indexer.app.infrastructure.db.models.ethereum_logs import EthereumLogDB  # noqa: F401
from log_indexer.app.infrastructure.db.models.indexing_progress import IndexingProgressDB  # noqa: F401


async def create_indexer_tables() -> None:
    """Create the indexer schema and tables on a fresh dev database."""
    engine = create_app_async_engine()
    try:
        async with engine.begin() as conn:
            await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {INDEXER_SCHEMA}"))
            await conn.run_sync(BaseDB.metadata.create_all)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(create_indexer_tables())
