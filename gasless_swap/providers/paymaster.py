"""
ERC-4337 Paymaster Provider.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from .base import JsonRpcProvider, ProviderError
from ..core.execution.userop import UserOperation


class PaymasterError(ProviderError):
    """Paymaster provider error."""
    pass


class PaymasterProvider(JsonRpcProvider):
    name = "paymaster"
    error_class = PaymasterError

    def __init__(
        self,
        rpc_url: str,
        *,
        rpc_method: str = "pm_sponsorUserOperation",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(rpc_url, transport=transport)
        self.rpc_method = rpc_method

    async def sponsor_user_operation(
        self,
        user_op: UserOperation,
        entry_point: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Return ``paymasterAndData`` plus any gas limits the paymaster overrides."""
        params: list[Any] = [user_op.to_rpc_dict(), entry_point]
        if context:
            params.append(context)
        result = await self._rpc_call(self.rpc_method, params)
        if isinstance(result, dict):
            paymaster_and_data = result.get("paymasterAndData") or result.get("paymaster_and_data")
            if paymaster_and_data:
                return {**result, "paymasterAndData": paymaster_and_data}
        if isinstance(result, str):
            return {"paymasterAndData": result}
        raise PaymasterError("Invalid paymaster response")
