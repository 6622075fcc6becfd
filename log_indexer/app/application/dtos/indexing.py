from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from log_indexer.app.domain.models import IndexingStatus


class IndexRangeRequest(BaseModel):
    rpc_url: str
    from_block: int | None = Field(None, ge=0)
    to_block: int | None = Field(None, ge=0)
    chain_id: int | None = Field(None, gt=0)


class IndexRangeResponse(BaseModel):
    indexed_count: int
    from_block: int
    to_block: int
    success: bool
    message: str


class IndexByFilterRequest(BaseModel):
    rpc_url: str
    from_block: int | None = Field(None, ge=0)
    to_block: int | None = Field(None, ge=0)
    address: str | None = None
    topics: list[str | list[str] | None] | None = Field(None, max_length=4)
    event_signature: str | None = None


class LogRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    block_number: int
    block_hash: str
    transaction_hash: str
    transaction_index: int
    log_index: int
    address: str
    data: str
    topics: list[str]
    removed: bool
    created_at: datetime
    updated_at: datetime


class LogsResponse(BaseModel):
    logs: list[LogRecordResponse]
    total_count: int
    success: bool


class IndexingStatusResponse(BaseModel):
    chain_id: int
    last_indexed_block: int
    status: IndexingStatus
    error_message: str | None = None
    success: bool
