from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column

from log_indexer.app.infrastructure.db.db_base import BaseDB


class EthereumLogDB(BaseDB):
    """
    Normalized EVM event logs ingested from an RPC node.

    Each row is one log as returned by eth_getLogs, enriched with the hash
    of its containing block. Hex values are stored as 0x-prefixed text
    exactly as normalized by the indexer (address casing preserved).

    A log is identified on-chain by (block_number, log_index, transaction_hash);
    the unique constraint on that triple makes re-indexing a range idempotent.
    """

    __tablename__ = "ethereum_logs"
    __table_args__ = (
        UniqueConstraint(
            "block_number",
            "log_index",
            "transaction_hash",
            name="uq_ethereum_logs_block_log_tx",
        ),
        # Latest-first and range scans
        Index("ix_ethereum_logs_block_log", "block_number", "log_index"),
        Index("ix_ethereum_logs_transaction_hash", "transaction_hash"),
    )

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    """Generated identifier (UUID4, assigned by the indexer)."""
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)

    # -------------------------------------------------------------------------
    # Block / transaction context
    # -------------------------------------------------------------------------

    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_hash: Mapped[str] = mapped_column(Text, nullable=False)
    transaction_hash: Mapped[str] = mapped_column(Text, nullable=False)
    transaction_index: Mapped[int] = mapped_column(Integer, nullable=False)

    """Index of the log within the block (0-based, deterministic ordering)."""
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)

    # -------------------------------------------------------------------------
    # Log payload
    # -------------------------------------------------------------------------

    address: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)

    """Ordered topics, topic0 first (0-4 entries)."""
    topics: Mapped[list[str]] = mapped_column(ARRAY(Text), nullable=False)

    """True if the node flagged the log as removed by a reorg."""
    removed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# Lookup by emitting contract, case-insensitive
Index("ix_ethereum_logs_address_lower", func.lower(EthereumLogDB.address))
