from __future__ import annotations

import logging
from typing import Any, Mapping
from uuid import uuid4

from sqlalchemy import Update, select, update
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from log_indexer.app.domain.errors import PersistenceError, ProgressConflictError, ProgressNotFound
from log_indexer.app.domain.models import IndexingProgress, IndexingStatus, utc_now
from log_indexer.app.infrastructure.db.models.indexing_progress import IndexingProgressDB


logger = logging.getLogger(__name__)

_progress = IndexingProgressDB.__table__


def _row_to_progress(row: Mapping[str, Any]) -> IndexingProgress:
    return IndexingProgress(
        id=row["id"],
        chain_id=row["chain_id"],
        last_indexed_block=row["last_indexed_block"],
        rpc_url=row["rpc_url"],
        status=IndexingStatus(row["status"]),
        error_message=row["error_message"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def build_save_progress_stmt(
    *,
    chain_id: int,
    last_indexed_block: int,
    rpc_url: str,
    expected_last_block: int | None,
) -> Insert | Update:
    """
    Compare-and-set write of the checkpoint.

    Without an expectation the row is created, and an existing row is left
    alone (ON CONFLICT DO NOTHING). With one, the row is updated only while
    the stored block still equals it. Either way RETURNING yields no row when
    the write was rejected.
    """
    now = utc_now()

    if expected_last_block is None:
        return (
            insert(_progress)
            .values(
                id=uuid4(),
                chain_id=chain_id,
                last_indexed_block=last_indexed_block,
                rpc_url=rpc_url,
                status=IndexingStatus.OK.value,
                error_message=None,
                created_at=now,
                updated_at=now,
            )
            .on_conflict_do_nothing(index_elements=[_progress.c.chain_id])
            .returning(*_progress.c)
        )

    return (
        update(_progress)
        .where(
            _progress.c.chain_id == chain_id,
            _progress.c.last_indexed_block == expected_last_block,
        )
        .values(
            last_indexed_block=last_indexed_block,
            rpc_url=rpc_url,
            status=IndexingStatus.OK.value,
            error_message=None,
            updated_at=now,
        )
        .returning(*_progress.c)
    )


class SqlAlchemyProgressStore:
    """PostgreSQL/SQLAlchemy implementation of ProgressStore."""

    def __init__(self, *, engine: AsyncEngine) -> None:
        self._engine = engine

    async def get_progress(self, chain_id: int) -> IndexingProgress | None:
        stmt = select(_progress).where(_progress.c.chain_id == chain_id)
        try:
            async with self._engine.connect() as conn:
                result = await conn.execute(stmt)
                row = result.mappings().one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError("get_progress", str(exc)) from exc
        return _row_to_progress(row) if row is not None else None

    async def save_progress(
        self,
        *,
        chain_id: int,
        last_indexed_block: int,
        rpc_url: str,
        expected_last_block: int | None,
    ) -> IndexingProgress:
        stmt = build_save_progress_stmt(
            chain_id=chain_id,
            last_indexed_block=last_indexed_block,
            rpc_url=rpc_url,
            expected_last_block=expected_last_block,
        )
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
                row = result.mappings().one_or_none()
                if row is None:
                    current = await conn.execute(
                        select(_progress.c.last_indexed_block).where(_progress.c.chain_id == chain_id)
                    )
                    actual = current.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError("save_progress", str(exc)) from exc

        if row is None:
            raise ProgressConflictError(chain_id, expected_last_block, actual)

        logger.debug(
            "Progress saved: chain_id=%s, last_indexed_block=%s",
            chain_id,
            last_indexed_block,
        )
        return _row_to_progress(row)

    async def set_error(self, chain_id: int, error_message: str) -> None:
        stmt = (
            update(_progress)
            .where(_progress.c.chain_id == chain_id)
            .values(
                status=IndexingStatus.ERROR.value,
                error_message=error_message,
                updated_at=utc_now(),
            )
            .returning(_progress.c.id)
        )
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(stmt)
                updated = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise PersistenceError("set_error", str(exc)) from exc

        if updated is None:
            raise ProgressNotFound(chain_id)
