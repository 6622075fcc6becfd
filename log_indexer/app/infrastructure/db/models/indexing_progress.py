from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from log_indexer.app.infrastructure.db.db_base import BaseDB


class IndexingProgressDB(BaseDB):
    """
    Per-chain indexing checkpoint.

    One row per chain_id. last_indexed_block is the highest block whose logs
    are durably stored; it only moves through a compare-and-set write.
    """

    __tablename__ = "indexing_progress"
    __table_args__ = (
        UniqueConstraint("chain_id", name="uq_indexing_progress_chain_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    chain_id: Mapped[int] = mapped_column(Integer, nullable=False)
    last_indexed_block: Mapped[int] = mapped_column(BigInteger, nullable=False)

    """RPC endpoint used by the last successful pass."""
    rpc_url: Mapped[str] = mapped_column(Text, nullable=False)

    """not_started | running | ok | error"""
    status: Mapped[str] = mapped_column(Text, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
