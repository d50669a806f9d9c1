"""
End-to-end tests for the gasless swap state machine with mocked collaborators.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from gasless_swap.config import SwapConfig
from gasless_swap.core.execution.userop import UserOpReceipt
from gasless_swap.core.execution.userop_builder import build_erc20_approve_call_data
from gasless_swap.core.gasless.errors import (
    ApprovalFailedError,
    NoLiquidityError,
    QuoteUnavailableError,
    RelayError,
    SignatureDecodeError,
)
from gasless_swap.core.gasless.models import (
    ApprovalMechanism,
    Quote,
    StatusSnapshot,
    SubmissionRecord,
    SwapRequest,
    SwapState,
)
from gasless_swap.core.gasless.orchestrator import SubmissionOrchestrator
from gasless_swap.core.gasless.signing import OwnerIdentity, SmartAccountIdentity

from quote_factory import BUY_TOKEN, PERMIT_APPROVAL, SELL_TOKEN, SPENDER, make_quote_data


OWNER_ADDRESS = "0x1111111111111111111111111111111111111111"
SMART_ADDRESS = "0x2222222222222222222222222222222222222222"
TRADE_HASH = "0x" + "cc" * 32

# r with a leading zero byte so normalization has to re-pad it
PERMIT_SIG = "0x" + "00" + "33" * 31 + "44" * 32 + "1c"
TRADE_SIG = "0x" + "55" * 32 + "00" + "66" * 31 + "1b"


def _relay(quote_data, statuses=("confirmed",)) -> MagicMock:
    relay = MagicMock()
    relay.quote = AsyncMock(return_value=Quote.model_validate(quote_data))
    relay.submit = AsyncMock(
        return_value=SubmissionRecord.model_validate({"tradeHash": TRADE_HASH, "type": "settler_metatransaction", "zid": "0xzid"})
    )
    relay.status = AsyncMock(side_effect=[StatusSnapshot(status=s, transactions=[{"txHash": "0xtx"}]) for s in statuses])
    return relay


def _owner() -> MagicMock:
    owner = MagicMock()
    owner.address = OWNER_ADDRESS
    owner.sign_typed_data = AsyncMock(return_value=PERMIT_SIG)
    return owner


def _smart_account(receipt_success: bool = True) -> MagicMock:
    account = MagicMock()
    account.address = SMART_ADDRESS
    account.sign_typed_data = AsyncMock(return_value=TRADE_SIG)
    account.send_user_operation = AsyncMock(return_value="0xuserop")
    account.wait_for_user_operation_receipt = AsyncMock(
        return_value=UserOpReceipt(user_op_hash="0xuserop", success=receipt_success, transaction_hash="0xapprovetx")
    )
    return account


def _orchestrator(relay, owner, account, max_attempts: int = 60) -> SubmissionOrchestrator:
    return SubmissionOrchestrator(
        SwapConfig(chain_id=8453, poll_interval_seconds=2.0, max_poll_attempts=max_attempts),
        relay,
        OwnerIdentity(owner),
        SmartAccountIdentity(account),
        sleep=AsyncMock(),
    )


REQUEST = SwapRequest(
    chain_id=8453,
    sell_token=SELL_TOKEN,
    buy_token=BUY_TOKEN,
    sell_amount=1_000_000,
    slippage_bps=100,
)


@pytest.mark.asyncio
async def test_allowance_shortfall_sends_one_approval_then_signs_trade():
    relay = _relay(make_quote_data(allowance={"actual": "0", "spender": SPENDER}, sell_quantity="1000000"))
    owner = _owner()
    account = _smart_account()

    outcome = await _orchestrator(relay, owner, account).run(REQUEST)

    account.send_user_operation.assert_awaited_once_with(
        [{"to": SELL_TOKEN, "value": 0, "data": build_erc20_approve_call_data(SPENDER, 1_000_000)}]
    )
    account.wait_for_user_operation_receipt.assert_awaited_once_with("0xuserop")
    owner.sign_typed_data.assert_not_awaited()
    account.sign_typed_data.assert_awaited_once()

    kwargs = relay.submit.await_args.kwargs
    assert kwargs["approval"] is None
    assert kwargs["trade"].signature.s == "0x" + "00" + "66" * 31

    assert outcome.approval_mechanism == ApprovalMechanism.ONCHAIN
    assert outcome.approval_user_op_hash == "0xuserop"
    assert outcome.history == (
        SwapState.QUOTING,
        SwapState.RESOLVING_APPROVAL,
        SwapState.ONCHAIN_APPROVING,
        SwapState.TRADE_SIGNING,
        SwapState.NORMALIZING,
        SwapState.SUBMITTING,
        SwapState.POLLING,
        SwapState.CONFIRMED,
    )


@pytest.mark.asyncio
async def test_permit_quote_signs_permit_with_owner_and_sends_no_transaction():
    relay = _relay(make_quote_data(approval=PERMIT_APPROVAL))
    owner = _owner()
    account = _smart_account()

    outcome = await _orchestrator(relay, owner, account).run(REQUEST)

    owner.sign_typed_data.assert_awaited_once()
    account.send_user_operation.assert_not_awaited()
    account.sign_typed_data.assert_awaited_once()

    approval = relay.submit.await_args.kwargs["approval"]
    assert approval.payload.type == "permit"
    assert approval.signature.r == "0x" + "00" + "33" * 31
    assert approval.signature.v == 28
    assert approval.signature.recovery_param == 1
    assert approval.to_dict()["signature"]["signatureType"] == 2

    assert outcome.approval_mechanism == ApprovalMechanism.PERMIT
    assert SwapState.PERMIT_SIGNING in outcome.history
    assert outcome.confirmed


@pytest.mark.asyncio
async def test_no_approval_goes_straight_to_trade_signing():
    relay = _relay(make_quote_data())
    owner = _owner()
    account = _smart_account()

    outcome = await _orchestrator(relay, owner, account).run(REQUEST)

    owner.sign_typed_data.assert_not_awaited()
    account.send_user_operation.assert_not_awaited()
    assert outcome.approval_mechanism == ApprovalMechanism.NONE
    assert outcome.history[2] == SwapState.NO_APPROVAL


@pytest.mark.asyncio
async def test_quote_uses_owner_as_taker():
    relay = _relay(make_quote_data())

    await _orchestrator(relay, _owner(), _smart_account()).run(REQUEST)

    relay.quote.assert_awaited_once_with(
        chain_id=8453,
        buy_token=BUY_TOKEN,
        sell_token=SELL_TOKEN,
        sell_amount=1_000_000,
        taker=OWNER_ADDRESS,
        slippage_bps=100,
    )


@pytest.mark.asyncio
async def test_confirmed_outcome_reports_trade_and_tx_hash():
    relay = _relay(make_quote_data(), statuses=("pending", "submitted", "Confirmed"))

    outcome = await _orchestrator(relay, _owner(), _smart_account()).run(REQUEST)

    assert outcome.state == SwapState.CONFIRMED
    assert outcome.trade_hash == TRADE_HASH
    assert outcome.zid == "0xzid"
    assert outcome.attempts == 3
    assert outcome.tx_hash == "0xtx"
    relay.status.assert_awaited_with(chain_id=8453, trade_hash=TRADE_HASH)


@pytest.mark.asyncio
async def test_polling_exhaustion_is_not_an_error():
    relay = _relay(make_quote_data(), statuses=["pending"] * 60)

    outcome = await _orchestrator(relay, _owner(), _smart_account()).run(REQUEST)

    assert outcome.state == SwapState.TIMED_OUT
    assert not outcome.confirmed
    assert outcome.attempts == 60
    assert relay.status.await_count == 60
    assert outcome.trade_hash == TRADE_HASH


@pytest.mark.asyncio
async def test_no_liquidity_aborts_before_signing():
    relay = MagicMock()
    relay.quote = AsyncMock(return_value=Quote.model_validate({"liquidity_available": False, "zid": "0xnone"}))
    relay.submit = AsyncMock()
    owner = _owner()
    account = _smart_account()
    orchestrator = _orchestrator(relay, owner, account)

    with pytest.raises(NoLiquidityError) as exc_info:
        await orchestrator.run(REQUEST)

    assert exc_info.value.zid == "0xnone"
    assert exc_info.value.state == SwapState.QUOTING
    owner.sign_typed_data.assert_not_awaited()
    account.sign_typed_data.assert_not_awaited()
    relay.submit.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_trade_payload_is_reported():
    data = make_quote_data()
    data["trade"] = None
    relay = _relay(data)

    with pytest.raises(QuoteUnavailableError):
        await _orchestrator(relay, _owner(), _smart_account()).run(REQUEST)


@pytest.mark.asyncio
async def test_relay_error_propagates_without_further_steps():
    relay = MagicMock()
    relay.quote = AsyncMock(side_effect=RelayError("fetch quote", 500, "internal"))
    relay.submit = AsyncMock()
    account = _smart_account()

    with pytest.raises(RelayError) as exc_info:
        await _orchestrator(relay, _owner(), account).run(REQUEST)

    assert exc_info.value.status_code == 500
    account.sign_typed_data.assert_not_awaited()
    relay.submit.assert_not_awaited()


@pytest.mark.asyncio
async def test_failed_approval_receipt_aborts_run():
    relay = _relay(make_quote_data(allowance={"actual": "0", "spender": SPENDER}))
    account = _smart_account(receipt_success=False)

    with pytest.raises(ApprovalFailedError) as exc_info:
        await _orchestrator(relay, _owner(), account).run(REQUEST)

    assert exc_info.value.transaction_hash == "0xapprovetx"
    account.sign_typed_data.assert_not_awaited()
    relay.submit.assert_not_awaited()


@pytest.mark.asyncio
async def test_malformed_trade_signature_is_never_submitted():
    relay = _relay(make_quote_data())
    account = _smart_account()
    account.sign_typed_data = AsyncMock(return_value="0x1234")
    orchestrator = _orchestrator(relay, _owner(), account)

    with pytest.raises(SignatureDecodeError) as exc_info:
        await orchestrator.run(REQUEST)

    assert exc_info.value.state == SwapState.NORMALIZING
    relay.submit.assert_not_awaited()


async def _yield_sleep(seconds: float) -> None:
    await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_concurrent_runs_keep_separate_state():
    relay = _relay(make_quote_data(), statuses=("pending", "pending", "confirmed", "confirmed"))
    orchestrator = SubmissionOrchestrator(
        SwapConfig(chain_id=8453, poll_interval_seconds=2.0, max_poll_attempts=5),
        relay,
        OwnerIdentity(_owner()),
        SmartAccountIdentity(_smart_account()),
        sleep=_yield_sleep,
    )

    first, second = await asyncio.gather(orchestrator.run(REQUEST), orchestrator.run(REQUEST))

    for outcome in (first, second):
        assert outcome.state == SwapState.CONFIRMED
        assert outcome.history == (
            SwapState.QUOTING,
            SwapState.RESOLVING_APPROVAL,
            SwapState.NO_APPROVAL,
            SwapState.TRADE_SIGNING,
            SwapState.NORMALIZING,
            SwapState.SUBMITTING,
            SwapState.POLLING,
            SwapState.CONFIRMED,
        )


@pytest.mark.asyncio
async def test_orchestrator_is_reusable_after_a_failed_run():
    relay = _relay(make_quote_data())
    relay.quote = AsyncMock(
        side_effect=[RelayError("fetch quote", 503, "busy"), Quote.model_validate(make_quote_data())]
    )
    orchestrator = _orchestrator(relay, _owner(), _smart_account())

    with pytest.raises(RelayError) as exc_info:
        await orchestrator.run(REQUEST)
    outcome = await orchestrator.run(REQUEST)

    assert exc_info.value.state == SwapState.QUOTING
    assert outcome.state == SwapState.CONFIRMED
    assert outcome.history[0] == SwapState.QUOTING
