from __future__ import annotations

from typing import Any
from uuid import uuid4

from log_indexer.app.domain.errors import ProviderError
from log_indexer.app.domain.models import LogRecord, utc_now
from log_indexer.app.domain.ports.out import RawLog


def to_hex(value: Any) -> str:
    """
    Render a provider value as a 0x-prefixed hex string.

    bytes-like values (HexBytes included) are lower-cased hex; strings are
    passed through untouched so the provider's casing is preserved.
    """
    if isinstance(value, str):
        return value if value.startswith("0x") else "0x" + value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex()
    raise TypeError(f"Cannot render {type(value).__name__} as hex")


def to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("bool is not a block/index number")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    raise TypeError(f"Cannot read {type(value).__name__} as int")


def _required(raw: RawLog, key: str) -> Any:
    value = raw.get(key)
    if value is None:
        raise ProviderError("normalize_log", f"log is missing {key!r}")
    return value


def raw_block_number(raw: RawLog) -> int:
    try:
        return to_int(_required(raw, "blockNumber"))
    except (TypeError, ValueError) as exc:
        raise ProviderError("normalize_log", f"malformed blockNumber: {exc}") from exc


def normalize_log(raw: RawLog, *, block_hash: str) -> LogRecord:
    """Convert one raw provider log into a fresh ``LogRecord``."""
    try:
        now = utc_now()
        return LogRecord(
            id=uuid4(),
            block_number=raw_block_number(raw),
            block_hash=block_hash,
            transaction_hash=to_hex(_required(raw, "transactionHash")),
            transaction_index=to_int(_required(raw, "transactionIndex")),
            log_index=to_int(_required(raw, "logIndex")),
            address=to_hex(_required(raw, "address")),
            data=to_hex(raw.get("data") or b""),
            topics=tuple(to_hex(t) for t in raw.get("topics") or ()),
            removed=bool(raw.get("removed") or False),
            created_at=now,
            updated_at=now,
        )
    except (TypeError, ValueError) as exc:
        raise ProviderError("normalize_log", str(exc)) from exc
