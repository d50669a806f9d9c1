"""
ERC-4337 UserOperation models and helpers.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from eth_abi import encode
from eth_utils import keccak, to_checksum_address


def _to_hex(value: int) -> str:
    return hex(value)


def _to_bytes(value: str) -> bytes:
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def _parse_hex(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    return int(value, 16)


@dataclass
class UserOperation:
    """
    ERC-4337 (EntryPoint v0.6) UserOperation payload.

    Values should be supplied in raw units (wei / gas units) and are encoded
    as hex for RPC calls.
    """
    sender: str
    nonce: int
    init_code: str
    call_data: str
    call_gas_limit: int = 0
    verification_gas_limit: int = 0
    pre_verification_gas: int = 0
    max_fee_per_gas: int = 0
    max_priority_fee_per_gas: int = 0
    paymaster_and_data: str = "0x"
    signature: str = "0x"

    def to_rpc_dict(self) -> Dict[str, Any]:
        return {
            "sender": self.sender,
            "nonce": _to_hex(self.nonce),
            "initCode": self.init_code,
            "callData": self.call_data,
            "callGasLimit": _to_hex(self.call_gas_limit),
            "verificationGasLimit": _to_hex(self.verification_gas_limit),
            "preVerificationGas": _to_hex(self.pre_verification_gas),
            "maxFeePerGas": _to_hex(self.max_fee_per_gas),
            "maxPriorityFeePerGas": _to_hex(self.max_priority_fee_per_gas),
            "paymasterAndData": self.paymaster_and_data,
            "signature": self.signature,
        }

    def apply_gas_estimate(self, estimate: "UserOpGasEstimate") -> None:
        self.call_gas_limit = estimate.call_gas_limit
        self.verification_gas_limit = estimate.verification_gas_limit
        self.pre_verification_gas = estimate.pre_verification_gas

    def apply_sponsorship(self, sponsorship: Dict[str, Any]) -> None:
        """Apply a paymaster response (gas fields are optional overrides)."""
        self.paymaster_and_data = sponsorship["paymasterAndData"]
        for rpc_key, attr in (
            ("callGasLimit", "call_gas_limit"),
            ("verificationGasLimit", "verification_gas_limit"),
            ("preVerificationGas", "pre_verification_gas"),
        ):
            if sponsorship.get(rpc_key):
                setattr(self, attr, int(sponsorship[rpc_key], 16))

    def hash(self, entry_point: str, chain_id: int) -> bytes:
        """Compute the userOpHash the EntryPoint asks the account to validate."""
        packed = encode(
            [
                "address", "uint256", "bytes32", "bytes32", "uint256",
                "uint256", "uint256", "uint256", "uint256", "bytes32",
            ],
            [
                to_checksum_address(self.sender),
                self.nonce,
                keccak(_to_bytes(self.init_code)),
                keccak(_to_bytes(self.call_data)),
                self.call_gas_limit,
                self.verification_gas_limit,
                self.pre_verification_gas,
                self.max_fee_per_gas,
                self.max_priority_fee_per_gas,
                keccak(_to_bytes(self.paymaster_and_data)),
            ],
        )
        return keccak(
            encode(
                ["bytes32", "address", "uint256"],
                [keccak(packed), to_checksum_address(entry_point), chain_id],
            )
        )


@dataclass
class UserOpGasEstimate:
    call_gas_limit: int
    verification_gas_limit: int
    pre_verification_gas: int

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "UserOpGasEstimate":
        return cls(
            call_gas_limit=_parse_hex(data.get("callGasLimit")) or 0,
            verification_gas_limit=_parse_hex(data.get("verificationGasLimit")) or 0,
            pre_verification_gas=_parse_hex(data.get("preVerificationGas")) or 0,
        )


@dataclass
class UserOpGasPrice:
    max_fee_per_gas: int
    max_priority_fee_per_gas: int

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "UserOpGasPrice":
        return cls(
            max_fee_per_gas=_parse_hex(data.get("maxFeePerGas")) or 0,
            max_priority_fee_per_gas=_parse_hex(data.get("maxPriorityFeePerGas")) or 0,
        )


@dataclass
class UserOpReceipt:
    user_op_hash: str
    success: bool
    transaction_hash: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    @classmethod
    def from_rpc(cls, user_op_hash: str, data: Dict[str, Any]) -> "UserOpReceipt":
        receipt = data.get("receipt") or {}
        success = data.get("success")
        if success is None:
            success = receipt.get("status") == "0x1"
        return cls(
            user_op_hash=user_op_hash,
            success=bool(success),
            transaction_hash=receipt.get("transactionHash"),
            block_number=_parse_hex(receipt.get("blockNumber")),
            gas_used=_parse_hex(data.get("actualGasUsed") or receipt.get("gasUsed")),
        )
