"""
Signer adapters for the two identities a gasless swap uses.

``LocalAccountSigner`` wraps the owner's private key. ``BundlerSmartAccount``
is an owner-validated ERC-4337 account that sends sponsored UserOperations
through a bundler and signs typed data with its owner key (ERC-1271).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence

from eth_account import Account
from eth_account.messages import encode_defunct, encode_typed_data
from eth_account.signers.local import LocalAccount

from ...providers.base import ProviderError
from ...providers.bundler import BundlerProvider
from ...providers.paymaster import PaymasterProvider
from ...providers.rpc import ChainClient
from ..gasless.errors import SmartAccountError
from .userop import UserOperation, UserOpReceipt
from .userop_builder import build_calls_data, build_entrypoint_get_nonce_call


logger = logging.getLogger(__name__)

# Well-formed placeholder so bundlers can simulate validation during estimation.
DUMMY_SIGNATURE = "0x" + "ff" * 64 + "1c"


def _hex_signature(signature: bytes) -> str:
    return "0x" + bytes(signature).hex()


class LocalAccountSigner:
    """Signs with a private key held in memory."""

    def __init__(self, account: LocalAccount) -> None:
        self._account = account
        self.address: str = account.address

    @classmethod
    def from_private_key(cls, private_key: str) -> "LocalAccountSigner":
        return cls(Account.from_key(private_key))

    async def sign_typed_data(self, typed_data: Dict[str, Any]) -> str:
        signable = encode_typed_data(full_message=typed_data)
        signed = self._account.sign_message(signable)
        return _hex_signature(signed.signature)

    def sign_message_hash(self, message_hash: bytes) -> str:
        """EIP-191 personal signature over a 32-byte hash."""
        signed = self._account.sign_message(encode_defunct(primitive=message_hash))
        return _hex_signature(signed.signature)


class BundlerSmartAccount:
    """ERC-4337 account whose UserOperations are validated against its owner key."""

    def __init__(
        self,
        owner: LocalAccountSigner,
        *,
        address: str,
        chain_id: int,
        entry_point: str,
        bundler: BundlerProvider,
        chain: ChainClient,
        paymaster: Optional[PaymasterProvider] = None,
        receipt_poll_interval_s: float = 2.0,
        receipt_max_attempts: int = 60,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        self.owner = owner
        self.address = address
        self.chain_id = chain_id
        self.entry_point = entry_point
        self.bundler = bundler
        self.chain = chain
        self.paymaster = paymaster
        self.receipt_poll_interval_s = receipt_poll_interval_s
        self.receipt_max_attempts = receipt_max_attempts
        self._sleep = sleep or asyncio.sleep

    async def sign_typed_data(self, typed_data: Dict[str, Any]) -> str:
        return await self.owner.sign_typed_data(typed_data)

    async def get_nonce(self, key: int = 0) -> int:
        result = await self.chain.call(self.entry_point, build_entrypoint_get_nonce_call(self.address, key))
        return int(result, 16)

    async def is_deployed(self) -> bool:
        code = await self.chain.get_code(self.address)
        return code not in ("0x", "0x0", "")

    async def build_user_operation(self, calls: Sequence[Dict[str, Any]]) -> UserOperation:
        if not await self.is_deployed():
            raise SmartAccountError(f"Smart account {self.address} has no code on chain {self.chain_id}")

        gas_price = await self.bundler.get_user_operation_gas_price()
        user_op = UserOperation(
            sender=self.address,
            nonce=await self.get_nonce(),
            init_code="0x",
            call_data=build_calls_data(calls),
            max_fee_per_gas=gas_price.max_fee_per_gas,
            max_priority_fee_per_gas=gas_price.max_priority_fee_per_gas,
            signature=DUMMY_SIGNATURE,
        )
        user_op.apply_gas_estimate(await self.bundler.estimate_user_operation_gas(user_op, self.entry_point))

        if self.paymaster is not None:
            sponsorship = await self.paymaster.sponsor_user_operation(user_op, self.entry_point)
            user_op.apply_sponsorship(sponsorship)

        user_op.signature = self.owner.sign_message_hash(user_op.hash(self.entry_point, self.chain_id))
        return user_op

    async def send_user_operation(self, calls: Sequence[Dict[str, Any]]) -> str:
        try:
            user_op = await self.build_user_operation(calls)
            return await self.bundler.send_user_operation(user_op, self.entry_point)
        except ProviderError as exc:
            raise SmartAccountError(str(exc)) from exc

    async def wait_for_user_operation_receipt(self, user_op_hash: str) -> UserOpReceipt:
        for attempt in range(1, self.receipt_max_attempts + 1):
            try:
                receipt = await self.bundler.get_user_operation_receipt(user_op_hash)
            except ProviderError as exc:
                raise SmartAccountError(str(exc)) from exc
            if receipt is not None:
                logger.info(f"User operation {user_op_hash} included (success={receipt.success})")
                return receipt
            logger.debug(f"User operation {user_op_hash} pending (attempt {attempt})")
            await self._sleep(self.receipt_poll_interval_s)

        raise SmartAccountError(
            f"User operation {user_op_hash} not included after {self.receipt_max_attempts} attempts"
        )

    async def aclose(self) -> None:
        await self.bundler.aclose()
        await self.chain.aclose()
        if self.paymaster is not None:
            await self.paymaster.aclose()
