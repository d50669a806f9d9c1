"""
ERC-4337 Bundler Provider.
"""

from __future__ import annotations

import logging
from typing import Optional

from .base import JsonRpcProvider, ProviderError
from ..core.execution.userop import UserOperation, UserOpGasEstimate, UserOpGasPrice, UserOpReceipt


logger = logging.getLogger(__name__)


class BundlerError(ProviderError):
    """Bundler provider error."""
    pass


class BundlerProvider(JsonRpcProvider):
    name = "bundler"
    error_class = BundlerError

    async def send_user_operation(
        self,
        user_op: UserOperation,
        entry_point: str,
    ) -> str:
        result = await self._rpc_call(
            "eth_sendUserOperation",
            [user_op.to_rpc_dict(), entry_point],
        )
        if not isinstance(result, str):
            raise BundlerError("Invalid bundler response for eth_sendUserOperation")
        logger.info(f"Sent user operation {result} from {user_op.sender}")
        return result

    async def estimate_user_operation_gas(
        self,
        user_op: UserOperation,
        entry_point: str,
    ) -> UserOpGasEstimate:
        result = await self._rpc_call(
            "eth_estimateUserOperationGas",
            [user_op.to_rpc_dict(), entry_point],
        )
        if not isinstance(result, dict):
            raise BundlerError("Invalid bundler response for eth_estimateUserOperationGas")
        return UserOpGasEstimate.from_rpc(result)

    async def get_user_operation_gas_price(self) -> UserOpGasPrice:
        """Return the bundler's "fast" fee tier (Pimlico extension)."""
        result = await self._rpc_call("pimlico_getUserOperationGasPrice", [])
        if not isinstance(result, dict) or not isinstance(result.get("fast"), dict):
            raise BundlerError("Invalid bundler response for pimlico_getUserOperationGasPrice")
        return UserOpGasPrice.from_rpc(result["fast"])

    async def get_user_operation_receipt(self, user_op_hash: str) -> Optional[UserOpReceipt]:
        result = await self._rpc_call(
            "eth_getUserOperationReceipt",
            [user_op_hash],
        )
        if not result:
            return None
        return UserOpReceipt.from_rpc(user_op_hash, result)
