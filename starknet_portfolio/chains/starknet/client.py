"""Starknet JSON-RPC client with fallback support."""
from __future__ import annotations

import logging
import ssl
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

import aiohttp
import certifi

from ...config import ChainConfig
from ...errors import ChainReadFailure
from .codec import get_selector, to_int

logger = logging.getLogger(__name__)


class RpcError(RuntimeError):
    """The node answered with a JSON-RPC error (e.g. the call reverted)."""


class StarknetClient:
    """Starknet RPC client with automatic endpoint fallback.

    Can be used as an async context manager to share one HTTP session across
    calls; otherwise each call opens and closes its own session.
    """

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0
        self._ssl_context = ssl.create_default_context(cafile=certifi.where())
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> StarknetClient:
        connector = aiohttp.TCPConnector(ssl=self._ssl_context)
        self._session = aiohttp.ClientSession(connector=connector)
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[aiohttp.ClientSession]:
        if self._session is not None:
            yield self._session
            return
        connector = aiohttp.TCPConnector(ssl=self._ssl_context)
        async with aiohttp.ClientSession(connector=connector) as session:
            yield session

    async def rpc_call(self, method: str, params: Any) -> Any:
        """Make RPC call with fallback to alternative endpoints.

        Transport failures rotate to the next endpoint. A JSON-RPC error is
        the node's answer, not an endpoint fault, and is raised immediately.
        """
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                async with self._session_scope() as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index

            if "error" in result:
                raise RpcError(f"RPC Error: {result['error']}")
            return result.get("result")

        raise RuntimeError(f"All RPC endpoints failed. Last error: {last_error}")

    async def call(
        self, contract_address: str, entrypoint: str, calldata: Sequence[int] = ()
    ) -> tuple[int, ...]:
        """Call a view entrypoint at the latest block and return its felts."""
        params = {
            "request": {
                "contract_address": contract_address,
                "entry_point_selector": hex(get_selector(entrypoint)),
                "calldata": [hex(to_int(arg)) for arg in calldata],
            },
            "block_id": "latest",
        }
        try:
            result = await self.rpc_call("starknet_call", params)
            if not isinstance(result, list):
                raise ValueError(f"unexpected result shape: {result!r}")
            return tuple(to_int(felt) for felt in result)
        except Exception as e:
            raise ChainReadFailure(contract_address, entrypoint, str(e)) from e
