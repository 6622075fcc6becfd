from __future__ import annotations

from typing import Dict

from web3 import AsyncHTTPProvider, AsyncWeb3

from log_indexer.app.config import settings
from log_indexer.app.domain.ports.out import ChainProvider, ChainProviderFactory
from log_indexer.app.infrastructure.providers.web3_chain_provider import Web3ChainProvider


def _make_web3_provider(rpc_url: str) -> ChainProvider:
    """
    Wire an AsyncWeb3 HTTP provider for one RPC endpoint.
    """
    w3 = AsyncWeb3(
        AsyncHTTPProvider(
            rpc_url,
            request_kwargs={"timeout": settings.rpc_timeout_seconds},
        )
    )
    return Web3ChainProvider(w3=w3, rpc_url=rpc_url)


_CHAIN_PROVIDER_REGISTRY: Dict[str, ChainProviderFactory] = {
    "web3": _make_web3_provider,
}


def chain_provider_factory(backend: str = "web3") -> ChainProviderFactory:
    """Return a callable building a ChainProvider for a given rpc_url."""
    try:
        return _CHAIN_PROVIDER_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported chain provider backend: {backend!r}")
