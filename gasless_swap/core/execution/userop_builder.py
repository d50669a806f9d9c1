"""
UserOperation calldata builders.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from eth_abi import encode
from eth_utils import keccak, to_checksum_address


ERC20_APPROVE_SELECTOR = "0x095ea7b3"  # approve(address,uint256)
EXECUTE_SIGNATURE = "execute(address,uint256,bytes)"
EXECUTE_BATCH_SIGNATURE = "executeBatch(address[],uint256[],bytes[])"


def _strip_0x(value: str) -> str:
    return value[2:] if value.startswith(("0x", "0X")) else value


def _encode_uint(value: int) -> str:
    if value < 0:
        raise ValueError("Value must be non-negative")
    if value >= 2**256:
        raise ValueError("Value does not fit in uint256")
    return format(value, "064x")


def _encode_address(address: str) -> str:
    addr = _strip_0x(address).lower()
    if len(addr) != 40:
        raise ValueError(f"Invalid address length: {address}")
    return addr.rjust(64, "0")


def _encode_bytes(data: str) -> str:
    hex_data = _strip_0x(data)
    if len(hex_data) % 2 != 0:
        raise ValueError("Byte data must have an even-length hex string")
    data_len = len(hex_data) // 2
    padded_len = ((data_len + 31) // 32) * 32
    padding = "0" * ((padded_len - data_len) * 2)
    return _encode_uint(data_len) + hex_data + padding


def selector_from_signature(signature: str) -> str:
    selector = keccak(text=signature)[:4].hex()
    return f"0x{selector}"


def build_erc20_approve_call_data(spender: str, amount: int) -> str:
    """
    Build calldata for ERC-20 approve(address,uint256).
    """
    return ERC20_APPROVE_SELECTOR + _encode_address(spender) + _encode_uint(amount)


def build_execute_call_data(to_address: str, value_wei: int, data: str) -> str:
    """
    Build calldata for execute(address,uint256,bytes).
    """
    selector = selector_from_signature(EXECUTE_SIGNATURE)
    head = (
        _encode_address(to_address)
        + _encode_uint(value_wei)
        + _encode_uint(96)  # offset to bytes data
    )
    tail = _encode_bytes(data)
    return selector + head + tail


def build_execute_batch_call_data(calls: Sequence[Dict[str, Any]]) -> str:
    """
    Build calldata for executeBatch(address[],uint256[],bytes[]).
    """
    targets: List[str] = [to_checksum_address(call["to"]) for call in calls]
    values: List[int] = [int(call.get("value") or 0) for call in calls]
    payloads: List[bytes] = [bytes.fromhex(_strip_0x(call.get("data") or "0x")) for call in calls]
    args = encode(["address[]", "uint256[]", "bytes[]"], [targets, values, payloads])
    return selector_from_signature(EXECUTE_BATCH_SIGNATURE) + args.hex()


def build_calls_data(calls: Sequence[Dict[str, Any]]) -> str:
    """Pick execute for a single call and executeBatch otherwise."""
    if not calls:
        raise ValueError("At least one call is required")
    if len(calls) == 1:
        call = calls[0]
        return build_execute_call_data(call["to"], int(call.get("value") or 0), call.get("data") or "0x")
    return build_execute_batch_call_data(calls)


def build_entrypoint_get_nonce_call(sender: str, key: int = 0) -> str:
    """
    Build calldata for EntryPoint.getNonce(address,uint192).
    """
    selector = selector_from_signature("getNonce(address,uint192)")
    head = _encode_address(sender) + _encode_uint(key)
    return selector + head
