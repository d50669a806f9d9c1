"""
Tests for signer identity separation and EIP-712 signing.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data

from gasless_swap.core.execution.smart_account import LocalAccountSigner
from gasless_swap.core.gasless.models import SignPayload
from gasless_swap.core.gasless.signature import normalize
from gasless_swap.core.gasless.signing import (
    OwnerIdentity,
    SigningCoordinator,
    SmartAccountIdentity,
    sign_typed_data,
)

from quote_factory import PERMIT_APPROVAL, SPENDER


PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
RAW_SIG = "0x" + "11" * 32 + "22" * 32 + "1b"


def _signer(address: str) -> MagicMock:
    signer = MagicMock()
    signer.address = address
    signer.sign_typed_data = AsyncMock(return_value=RAW_SIG)
    return signer


@pytest.fixture
def permit_payload() -> SignPayload:
    return SignPayload.model_validate(PERMIT_APPROVAL)


@pytest.mark.asyncio
async def test_permit_is_signed_by_owner(permit_payload):
    owner = _signer("0xowner")
    smart = _signer("0xsmart")

    signature = await SigningCoordinator().sign_permit(OwnerIdentity(owner), permit_payload)

    assert signature == RAW_SIG
    owner.sign_typed_data.assert_awaited_once_with(permit_payload.typed_data)
    smart.sign_typed_data.assert_not_awaited()


@pytest.mark.asyncio
async def test_trade_is_signed_by_smart_account(permit_payload):
    smart = _signer("0xsmart")

    await SigningCoordinator().sign_trade(SmartAccountIdentity(smart), permit_payload)

    smart.sign_typed_data.assert_awaited_once_with(permit_payload.typed_data)


@pytest.mark.asyncio
async def test_trade_rejects_owner_identity(permit_payload):
    owner = _signer("0xowner")

    with pytest.raises(TypeError):
        await SigningCoordinator().sign_trade(OwnerIdentity(owner), permit_payload)  # type: ignore[arg-type]
    owner.sign_typed_data.assert_not_awaited()


@pytest.mark.asyncio
async def test_permit_rejects_smart_account_identity(permit_payload):
    smart = _signer("0xsmart")

    with pytest.raises(TypeError):
        await SigningCoordinator().sign_permit(SmartAccountIdentity(smart), permit_payload)  # type: ignore[arg-type]
    smart.sign_typed_data.assert_not_awaited()


@pytest.mark.asyncio
async def test_sign_typed_data_rejects_untagged_signers(permit_payload):
    with pytest.raises(TypeError):
        await sign_typed_data(_signer("0xraw"), permit_payload)  # type: ignore[arg-type]


def test_identity_exposes_address():
    assert OwnerIdentity(_signer("0xowner")).address == "0xowner"
    assert SmartAccountIdentity(_signer("0xsmart")).address == "0xsmart"


@pytest.mark.asyncio
async def test_local_signer_produces_recoverable_permit_signature():
    signer = LocalAccountSigner.from_private_key(PRIVATE_KEY)
    typed_data = {
        "types": {
            "EIP712Domain": [
                {"name": "name", "type": "string"},
                {"name": "version", "type": "string"},
                {"name": "chainId", "type": "uint256"},
                {"name": "verifyingContract", "type": "address"},
            ],
            "Permit": [
                {"name": "owner", "type": "address"},
                {"name": "spender", "type": "address"},
                {"name": "value", "type": "uint256"},
                {"name": "nonce", "type": "uint256"},
                {"name": "deadline", "type": "uint256"},
            ],
        },
        "primaryType": "Permit",
        "domain": {
            "name": "USD Coin",
            "version": "2",
            "chainId": 8453,
            "verifyingContract": "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913",
        },
        "message": {
            "owner": signer.address,
            "spender": SPENDER,
            "value": 1000000,
            "nonce": 0,
            "deadline": 1900000000,
        },
    }
    payload = SignPayload(type="permit", hash="0x" + "00" * 32, eip712=typed_data)

    raw = await SigningCoordinator().sign_permit(OwnerIdentity(signer), payload)

    assert raw.startswith("0x") and len(raw) == 132
    recovered = Account.recover_message(encode_typed_data(full_message=typed_data), signature=raw)
    assert recovered == signer.address

    normalized = normalize(raw)
    assert normalized.v in (27, 28)
    assert normalized.to_compact() == raw
