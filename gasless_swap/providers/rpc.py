"""Minimal read-only chain client used for smart account setup."""

from __future__ import annotations

from .base import JsonRpcProvider, ProviderError


class ChainClientError(ProviderError):
    """Chain RPC error."""
    pass


class ChainClient(JsonRpcProvider):
    name = "chain"
    error_class = ChainClientError

    async def chain_id(self) -> int:
        return int(await self._rpc_call("eth_chainId", []), 16)

    async def call(self, to: str, data: str, block: str = "latest") -> str:
        result = await self._rpc_call("eth_call", [{"to": to, "data": data}, block])
        if not isinstance(result, str):
            raise ChainClientError("Invalid response for eth_call")
        return result

    async def get_code(self, address: str, block: str = "latest") -> str:
        result = await self._rpc_call("eth_getCode", [address, block])
        return result or "0x"
