"""
ERC-4337 execution helpers: UserOperation models, calldata builders and the
signer adapters in ``smart_account`` (imported directly, since they depend on
the JSON-RPC providers).
"""

from .userop import UserOperation, UserOpGasEstimate, UserOpGasPrice, UserOpReceipt
from .userop_builder import (
    build_calls_data,
    build_entrypoint_get_nonce_call,
    build_erc20_approve_call_data,
    build_execute_call_data,
)

__all__ = [
    "UserOperation",
    "UserOpGasEstimate",
    "UserOpGasPrice",
    "UserOpReceipt",
    "build_calls_data",
    "build_entrypoint_get_nonce_call",
    "build_erc20_approve_call_data",
    "build_execute_call_data",
]
