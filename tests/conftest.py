"""Pytest configuration and shared fixtures for all tests."""

import asyncio
import os
import sys
from pathlib import Path
from typing import Any

# Minimal environment so that log_indexer.app.config can build Settings
os.environ.setdefault("PROJECT_NAME", "chain-log-indexer-test")
os.environ.setdefault("POSTGRES_USER", "test")
os.environ.setdefault("POSTGRES_PASSWORD", "test")
os.environ.setdefault("POSTGRES_SERVER", "localhost")
os.environ.setdefault("POSTGRES_PORT", "5432")
os.environ.setdefault("POSTGRES_DB", "test")
os.environ.setdefault("RPC_URL", "http://localhost:8545")

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from log_indexer.app.application.services.indexing_engine import IndexingEngine
from log_indexer.app.domain.errors import ProviderError
from log_indexer.app.domain.models import LogFilter
from log_indexer.app.infrastructure.adapters.memory.log_store import InMemoryLogStore
from log_indexer.app.infrastructure.adapters.memory.progress_store import InMemoryProgressStore


RPC_URL = "http://localhost:8545"
CONTRACT = "0xAbC0000000000000000000000000000000000001"
OTHER_CONTRACT = "0x00000000000000000000000000000000000000ff"
TOPIC_A = "0x" + "01".rjust(64, "0")
TOPIC_B = "0x" + "02".rjust(64, "0")


def block_hash_for(block_number: int) -> str:
    return "0x" + f"{block_number:x}".rjust(64, "b")


def make_raw_log(
    block_number: int,
    log_index: int,
    *,
    tx_index: int = 0,
    address: str = CONTRACT,
    topics: tuple[str, ...] = (TOPIC_A,),
    data: bytes = b"\x00\x2a",
    removed: bool | None = None,
) -> dict[str, Any]:
    """Raw log shaped like a web3 LogReceipt (hashes/topics as bytes)."""
    raw: dict[str, Any] = {
        "blockNumber": block_number,
        "transactionHash": bytes.fromhex(f"{block_number:08x}{tx_index:08x}".rjust(64, "a")),
        "transactionIndex": tx_index,
        "logIndex": log_index,
        "address": address,
        "data": data,
        "topics": [bytes.fromhex(t[2:]) for t in topics],
    }
    if removed is not None:
        raw["removed"] = removed
    return raw


class FakeChainProvider:
    """
    In-process ChainProvider.

    Serves a fixed list of raw logs, applying range/address/topic matching
    the way a node would, and records every call.
    """

    def __init__(self, *, latest: int = 100, logs: list[dict[str, Any]] | None = None) -> None:
        self.latest = latest
        self.logs: list[dict[str, Any]] = list(logs or [])
        self.failing_blocks: set[int] = set()
        self.fail_get_logs = False
        self.latest_block_calls = 0
        self.block_hash_calls: list[int] = []
        self.get_logs_calls: list[LogFilter] = []

    async def latest_block(self) -> int:
        self.latest_block_calls += 1
        return self.latest

    async def get_block_hash(self, block_number: int) -> str:
        self.block_hash_calls.append(block_number)
        await asyncio.sleep(0)
        if block_number in self.failing_blocks:
            raise ProviderError("get_block", f"block {block_number} unavailable")
        return block_hash_for(block_number)

    async def get_logs(self, log_filter: LogFilter) -> list[dict[str, Any]]:
        self.get_logs_calls.append(log_filter)
        await asyncio.sleep(0)
        if self.fail_get_logs:
            raise ProviderError("get_logs", "connection refused")

        from_block = log_filter.from_block if log_filter.from_block is not None else self.latest
        to_block = log_filter.to_block if log_filter.to_block is not None else self.latest
        positions = log_filter.topic_positions()

        matched = []
        for raw in self.logs:
            if not from_block <= raw["blockNumber"] <= to_block:
                continue
            if log_filter.address and raw["address"].lower() != log_filter.address.lower():
                continue
            topics = ["0x" + t.hex() for t in raw["topics"]]
            if not _topics_match(topics, positions):
                continue
            matched.append(raw)
        return matched


def _topics_match(topics: list[str], positions: list[Any]) -> bool:
    for i, selector in enumerate(positions):
        if selector is None:
            continue
        if i >= len(topics):
            return False
        values = [selector] if isinstance(selector, str) else selector
        if topics[i].lower() not in {v.lower() for v in values}:
            return False
    return True


@pytest.fixture
def fake_provider():
    return FakeChainProvider()


@pytest.fixture
def log_store():
    return InMemoryLogStore()


@pytest.fixture
def progress_store():
    return InMemoryProgressStore()


@pytest.fixture
def engine(fake_provider, log_store, progress_store):
    """IndexingEngine wired to the fake provider and in-memory stores."""
    return IndexingEngine(
        provider_factory=lambda rpc_url: fake_provider,
        log_store=log_store,
        progress_store=progress_store,
    )
