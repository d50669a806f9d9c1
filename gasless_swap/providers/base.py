from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

import httpx


class ProviderError(Exception):
    """Base provider error."""
    pass


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 20

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class JsonRpcProvider(Provider):
    """Provider speaking JSON-RPC 2.0 over a single HTTP endpoint."""

    error_class: Type[ProviderError] = ProviderError

    def __init__(
        self,
        rpc_url: str,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._request_id = 0

    async def ready(self) -> bool:
        return bool(self.rpc_url)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {"status": "disabled", "reason": f"{self.name} not configured"}

        try:
            result = await self._rpc_call("eth_chainId", [])
            return {"status": "healthy", "chainId": result}
        except (httpx.HTTPError, ProviderError) as exc:
            return {"status": "error", "reason": str(exc)}

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _rpc_call(self, method: str, params: list[Any]) -> Any:
        if not await self.ready():
            raise self.error_class(f"{self.name} provider is not configured")
        if not self._client or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport)

        self._request_id += 1
        try:
            response = await self._client.post(
                self.rpc_url,
                json={"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise self.error_class(f"{method} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise self.error_class(f"{method} returned a non-JSON body") from exc
        if "error" in payload:
            raise self.error_class(f"{method} failed: {payload['error']}")
        return payload.get("result")
