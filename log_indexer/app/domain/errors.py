from __future__ import annotations


class IndexerError(Exception):
    """Base class for every error raised by the indexing pipeline."""


class ProviderError(IndexerError):
    """
    RPC-side failure: unreachable endpoint, timeout, JSON-RPC error,
    malformed/missing block or log fields, unparsable address/topic.
    """

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")


class PersistenceError(IndexerError):
    """Batch insert or query failure in a store."""

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")


class ProgressNotFound(IndexerError):
    def __init__(self, chain_id: int) -> None:
        self.chain_id = chain_id
        super().__init__(f"No indexing progress for chain_id={chain_id}")


class ProgressConflictError(PersistenceError):
    """Checkpoint moved under a concurrent pass (compare-and-set rejected)."""

    def __init__(self, chain_id: int, expected: int | None, actual: int | None) -> None:
        self.chain_id = chain_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            "save_progress",
            f"chain_id={chain_id}: expected last_indexed_block={expected}, found {actual}",
        )


class InvalidFilterError(ProviderError, ValueError):
    """
    Filter that cannot be turned into a provider query: unparsable
    address/topic/signature or an inverted block range.
    """

    def __init__(self, detail: str) -> None:
        super().__init__("build_filter", detail)
