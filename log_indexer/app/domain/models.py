from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Final, Sequence, Union
from uuid import UUID

from eth_utils import is_hex_address, keccak

from log_indexer.app.domain.errors import InvalidFilterError


MAX_TOPICS: Final[int] = 4

_HEX32_RE: Final[re.Pattern[str]] = re.compile(r"^0x[0-9a-fA-F]{64}$")

# A topic position is either a wildcard, a single value or an OR-list.
TopicSelector = Union[str, Sequence[str], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_topic_hex(value: str) -> bool:
    return bool(_HEX32_RE.match(value))


def is_address_hex(value: str) -> bool:
    # Stored addresses are 0x-prefixed.
    return value.startswith("0x") and is_hex_address(value)


def event_signature_topic(event_signature: str) -> str:
    """
    Turn an event signature into its topic0 value.

    Accepts either a ready 32-byte hex topic or a canonical text signature,
    e.g. "Transfer(address,address,uint256)", which is hashed with keccak-256.
    """
    signature = event_signature.strip()
    if not signature:
        raise InvalidFilterError("event_signature must not be empty")
    if signature.startswith("0x"):
        if not is_topic_hex(signature):
            raise InvalidFilterError(f"Invalid event_signature topic: {event_signature!r}")
        return signature.lower()
    if "(" not in signature or not signature.endswith(")"):
        raise InvalidFilterError(f"Invalid event_signature: {event_signature!r}")
    return "0x" + keccak(text=signature.replace(" ", "")).hex()


class IndexingStatus(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    OK = "ok"
    ERROR = "error"


@dataclass(frozen=True)
class BlockRange:
    from_block: int
    to_block: int

    def validate(self) -> None:
        if self.from_block < 0 or self.to_block < 0:
            raise InvalidFilterError("Block numbers must be non-negative")
        if self.from_block > self.to_block:
            raise InvalidFilterError("from_block must be <= to_block")


@dataclass(frozen=True)
class LogFilter:
    """
    Criteria for a log query.

    Every field is optional. Block bounds are inclusive. ``topics`` is
    positional (index 0 = topic0); each position is ``None`` (any value),
    a hex string or a list of hex strings matched with OR. ``event_signature``
    is a topic0 convenience and may not contradict an explicit topic0.
    """

    from_block: int | None = None
    to_block: int | None = None
    address: str | None = None
    topics: tuple[TopicSelector, ...] | None = None
    event_signature: str | None = None

    def __post_init__(self) -> None:
        if self.topics is not None and not isinstance(self.topics, tuple):
            object.__setattr__(self, "topics", tuple(self.topics))

    @property
    def has_range(self) -> bool:
        return self.from_block is not None and self.to_block is not None

    def with_range(self, from_block: int, to_block: int) -> "LogFilter":
        return replace(self, from_block=from_block, to_block=to_block)

    def validate(self) -> None:
        if self.from_block is not None and self.from_block < 0:
            raise InvalidFilterError("from_block must be non-negative")
        if self.to_block is not None and self.to_block < 0:
            raise InvalidFilterError("to_block must be non-negative")
        if self.has_range and self.to_block < self.from_block:  # type: ignore[operator]
            raise InvalidFilterError("to_block must be >= from_block")

        if self.address is not None and not is_address_hex(self.address):
            raise InvalidFilterError(f"Invalid address: {self.address!r}")

        positions = self.topic_positions()
        if len(positions) > MAX_TOPICS:
            raise InvalidFilterError(f"At most {MAX_TOPICS} topic positions are allowed")
        for position in positions:
            for value in _selector_values(position):
                if not is_topic_hex(value):
                    raise InvalidFilterError(f"Invalid topic: {value!r}")

    def topic_positions(self) -> list[TopicSelector]:
        """Positional topics with ``event_signature`` merged into topic0."""
        positions: list[TopicSelector] = [
            list(p) if isinstance(p, (list, tuple)) else p for p in (self.topics or ())
        ]
        for position in positions:
            if isinstance(position, list) and not position:
                raise InvalidFilterError("OR-topic lists must not be empty")

        if self.event_signature is None:
            return positions

        topic0 = event_signature_topic(self.event_signature)
        if not positions:
            return [topic0]

        current = positions[0]
        if current is None:
            positions[0] = topic0
        elif topic0 not in {v.lower() for v in _selector_values(current)}:
            raise InvalidFilterError(
                f"event_signature {self.event_signature!r} contradicts topic0 {current!r}"
            )
        else:
            positions[0] = topic0
        return positions


def _selector_values(selector: TopicSelector) -> list[str]:
    if selector is None:
        return []
    if isinstance(selector, str):
        return [selector]
    return list(selector)


@dataclass(frozen=True)
class LogRecord:
    """A normalized on-chain log as stored by the indexer."""

    id: UUID
    block_number: int
    block_hash: str
    transaction_hash: str
    transaction_index: int
    log_index: int
    address: str
    data: str
    topics: tuple[str, ...]
    removed: bool = False
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def natural_key(self) -> tuple[int, int, str]:
        return (self.block_number, self.log_index, self.transaction_hash)


@dataclass(frozen=True)
class IndexingProgress:
    id: UUID
    chain_id: int
    last_indexed_block: int
    rpc_url: str
    status: IndexingStatus
    error_message: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
