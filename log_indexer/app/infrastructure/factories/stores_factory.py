from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from sqlalchemy.ext.asyncio import AsyncEngine

from log_indexer.app.domain.ports.out import LogStore, ProgressStore
from log_indexer.app.infrastructure.adapters.memory.log_store import InMemoryLogStore
from log_indexer.app.infrastructure.adapters.memory.progress_store import InMemoryProgressStore
from log_indexer.app.infrastructure.adapters.postgres.log_store import SqlAlchemyLogStore
from log_indexer.app.infrastructure.adapters.postgres.progress_store import SqlAlchemyProgressStore


@dataclass(frozen=True)
class Stores:
    log_store: LogStore
    progress_store: ProgressStore


StoresFactory = Callable[[AsyncEngine | None], Stores]


def _make_sqlalchemy_stores(engine: AsyncEngine | None) -> Stores:
    if engine is None:
        raise ValueError("The sqlalchemy backend requires an AsyncEngine")
    return Stores(
        log_store=SqlAlchemyLogStore(engine=engine),
        progress_store=SqlAlchemyProgressStore(engine=engine),
    )


_STORES_REGISTRY: Dict[str, StoresFactory] = {
    "sqlalchemy": _make_sqlalchemy_stores,
    # Process-local, nothing survives the task; useful for dry runs against an RPC.
    "memory": lambda engine: Stores(
        log_store=InMemoryLogStore(),
        progress_store=InMemoryProgressStore(),
    ),
}


def requires_engine(backend: str) -> bool:
    return backend == "sqlalchemy"


def stores_factory(
    backend: str,
    engine: AsyncEngine | None = None,
) -> Stores:
    try:
        factory = _STORES_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported store backend: {backend!r}")
    return factory(engine)
