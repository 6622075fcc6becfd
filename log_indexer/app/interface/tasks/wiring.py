from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from log_indexer.app.application.services.indexing_engine import IndexingEngine
from log_indexer.app.infrastructure.db.engine import create_app_async_engine
from log_indexer.app.infrastructure.factories.chain_provider_factory import chain_provider_factory
from log_indexer.app.infrastructure.factories.stores_factory import (
    Stores,
    requires_engine,
    stores_factory,
)


@dataclass(frozen=True)
class IndexingContext:
    engine: IndexingEngine
    stores: Stores


@asynccontextmanager
async def indexing_context(
    *,
    backend: str = "sqlalchemy",
    provider_backend: str = "web3",
) -> AsyncIterator[IndexingContext]:
    """
    Build stores + IndexingEngine for one task run.

    The database engine (when the backend needs one) lives exactly as long
    as the context and is disposed on exit.
    """
    db_engine = create_app_async_engine() if requires_engine(backend) else None
    try:
        stores = stores_factory(backend, db_engine)
        engine = IndexingEngine(
            provider_factory=chain_provider_factory(provider_backend),
            log_store=stores.log_store,
            progress_store=stores.progress_store,
        )
        yield IndexingContext(engine=engine, stores=stores)
    finally:
        if db_engine is not None:
            await db_engine.dispose()
