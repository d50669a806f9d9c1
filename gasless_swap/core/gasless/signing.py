"""
EIP-712 signing with explicitly tagged signer identities.

Permits are scoped to the token holder's ordinary key, while the trade must be
signed by the smart account. The two identities are distinct types so the
trade can never be signed by the owner key by accident.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Protocol, Sequence, Union, runtime_checkable

from ..execution.userop import UserOpReceipt
from .models import SignPayload


@runtime_checkable
class TypedDataSigner(Protocol):
    address: str

    async def sign_typed_data(self, typed_data: Dict[str, Any]) -> str:
        """Sign full EIP-712 typed data and return a 65-byte hex signature."""
        ...


@runtime_checkable
class SmartAccount(TypedDataSigner, Protocol):
    async def send_user_operation(self, calls: Sequence[Dict[str, Any]]) -> str:
        ...

    async def wait_for_user_operation_receipt(self, user_op_hash: str) -> UserOpReceipt:
        ...


@dataclass(frozen=True)
class OwnerIdentity:
    """The externally-owned account that holds the tokens."""

    signer: TypedDataSigner

    @property
    def address(self) -> str:
        return self.signer.address


@dataclass(frozen=True)
class SmartAccountIdentity:
    """The smart account that executes and authorizes the trade."""

    account: SmartAccount

    @property
    def address(self) -> str:
        return self.account.address


Identity = Union[OwnerIdentity, SmartAccountIdentity]


async def sign_typed_data(identity: Identity, payload: SignPayload) -> str:
    if isinstance(identity, OwnerIdentity):
        return await identity.signer.sign_typed_data(payload.typed_data)
    if isinstance(identity, SmartAccountIdentity):
        return await identity.account.sign_typed_data(payload.typed_data)
    raise TypeError(f"Unsupported signer identity: {type(identity).__name__}")


class SigningCoordinator:
    """Produces the permit and trade signatures for a quote."""

    async def sign_permit(self, owner: OwnerIdentity, payload: SignPayload) -> str:
        if not isinstance(owner, OwnerIdentity):
            raise TypeError("Permit signatures must come from the owner identity")
        return await sign_typed_data(owner, payload)

    async def sign_trade(self, smart_account: SmartAccountIdentity, payload: SignPayload) -> str:
        if not isinstance(smart_account, SmartAccountIdentity):
            raise TypeError("Trade signatures must come from the smart account identity")
        return await sign_typed_data(smart_account, payload)
