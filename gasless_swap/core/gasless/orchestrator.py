"""
Gasless swap orchestration.

Runs quote -> approval -> signing -> normalization -> submission -> polling
as a forward-only state machine. Any failure aborts the run; polling
exhaustion finishes it with ``timed_out``.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Set, Tuple

import structlog

from ...config import SwapConfig
from .approval import ApprovalResolver
from .errors import (
    ApprovalFailedError,
    GaslessSwapError,
    InvalidTransitionError,
    NoLiquidityError,
    QuoteUnavailableError,
)
from .models import (
    ApprovalMechanism,
    ApprovalPlan,
    Quote,
    SignedPayload,
    StatusSnapshot,
    SubmissionRecord,
    SwapOutcome,
    SwapRequest,
    SwapState,
)
from .poller import SleepFn, StatusPoller
from .signature import SignatureCodec
from .signing import OwnerIdentity, SigningCoordinator, SmartAccountIdentity


class GaslessRelay(Protocol):
    async def quote(
        self,
        *,
        chain_id: int,
        buy_token: str,
        sell_token: str,
        sell_amount: int,
        taker: str,
        slippage_bps: int,
    ) -> Quote:
        ...

    async def submit(
        self,
        *,
        chain_id: int,
        approval: Optional[SignedPayload],
        trade: SignedPayload,
    ) -> SubmissionRecord:
        ...

    async def status(self, *, chain_id: int, trade_hash: str) -> StatusSnapshot:
        ...


class _RunState:
    """State cursor for one run. Each call to ``run`` gets its own."""

    def __init__(self, transitions: Dict[Optional[SwapState], Set[SwapState]]) -> None:
        self._transitions = transitions
        self.state: Optional[SwapState] = None
        self.history: List[SwapState] = []

    def advance(self, to_state: SwapState) -> None:
        allowed = self._transitions.get(self.state, set())
        if to_state not in allowed:
            from_label = self.state.value if self.state else "start"
            raise InvalidTransitionError(from_label, to_state.value)
        self.state = to_state
        self.history.append(to_state)

    def snapshot(self) -> Tuple[SwapState, ...]:
        return tuple(self.history)


class SubmissionOrchestrator:
    """Drives gasless swaps from quote to settlement.

    The orchestrator holds only configuration and collaborators. Run state
    lives in a ``_RunState`` created per call.
    A failure raised out of ``run`` carries the state it happened in as
    ``error.state``.
    """

    TRANSITIONS: Dict[Optional[SwapState], Set[SwapState]] = {
        None: {SwapState.QUOTING},
        SwapState.QUOTING: {SwapState.RESOLVING_APPROVAL},
        SwapState.RESOLVING_APPROVAL: {
            SwapState.ONCHAIN_APPROVING,
            SwapState.PERMIT_SIGNING,
            SwapState.NO_APPROVAL,
        },
        SwapState.ONCHAIN_APPROVING: {SwapState.TRADE_SIGNING},
        SwapState.PERMIT_SIGNING: {SwapState.TRADE_SIGNING},
        SwapState.NO_APPROVAL: {SwapState.TRADE_SIGNING},
        SwapState.TRADE_SIGNING: {SwapState.NORMALIZING},
        SwapState.NORMALIZING: {SwapState.SUBMITTING},
        SwapState.SUBMITTING: {SwapState.POLLING},
        SwapState.POLLING: {SwapState.CONFIRMED, SwapState.TIMED_OUT},
    }

    _APPROVAL_STATES = {
        ApprovalMechanism.ONCHAIN: SwapState.ONCHAIN_APPROVING,
        ApprovalMechanism.PERMIT: SwapState.PERMIT_SIGNING,
        ApprovalMechanism.NONE: SwapState.NO_APPROVAL,
    }

    def __init__(
        self,
        config: SwapConfig,
        relay: GaslessRelay,
        owner: OwnerIdentity,
        smart_account: SmartAccountIdentity,
        *,
        resolver: Optional[ApprovalResolver] = None,
        coordinator: Optional[SigningCoordinator] = None,
        codec: Optional[SignatureCodec] = None,
        sleep: Optional[SleepFn] = None,
    ) -> None:
        self.config = config
        self.relay = relay
        self.owner = owner
        self.smart_account = smart_account
        self.resolver = resolver or ApprovalResolver()
        self.coordinator = coordinator or SigningCoordinator()
        self.codec = codec or SignatureCodec()
        self.poller = StatusPoller(
            interval_s=config.poll_interval_seconds,
            max_attempts=config.max_poll_attempts,
            sleep=sleep,
        )
        self._logger = structlog.stdlib.get_logger("gasless.orchestrator")

    async def run(self, request: SwapRequest) -> SwapOutcome:
        run = _RunState(self.TRANSITIONS)
        try:
            return await self._run(request, run)
        except GaslessSwapError as exc:
            exc.state = run.state
            raise

    def _transition(self, run: _RunState, to_state: SwapState) -> None:
        run.advance(to_state)
        self._logger.debug("state_transition", state=to_state.value)

    async def _run(self, request: SwapRequest, run: _RunState) -> SwapOutcome:
        log = self._logger.bind(chain_id=request.chain_id)

        self._transition(run, SwapState.QUOTING)
        quote = await self.relay.quote(
            chain_id=request.chain_id,
            buy_token=request.buy_token,
            sell_token=request.sell_token,
            sell_amount=request.sell_amount,
            taker=self.owner.address,
            slippage_bps=request.slippage_bps,
        )
        if not quote.liquidity_available:
            raise NoLiquidityError(zid=quote.zid)
        if quote.trade is None:
            raise QuoteUnavailableError("Quote reports liquidity but has no trade payload")
        log = log.bind(zid=quote.zid)
        log.info(
            "quote_received",
            buy_quantity=quote.buy_quantity,
            sell_quantity=quote.sell_quantity,
            permit_available=quote.approval is not None,
        )

        self._transition(run, SwapState.RESOLVING_APPROVAL)
        plan = self.resolver.resolve(quote)

        self._transition(run, self._APPROVAL_STATES[plan.mechanism])
        approval_user_op_hash = await self._approve_onchain(plan, log)
        permit_signature = None
        if plan.mechanism == ApprovalMechanism.PERMIT:
            permit_signature = await self.coordinator.sign_permit(self.owner, plan.permit)
            log.info("permit_signed", signer=self.owner.address)

        self._transition(run, SwapState.TRADE_SIGNING)
        trade_signature = await self.coordinator.sign_trade(self.smart_account, quote.trade)
        log.info("trade_signed", signer=self.smart_account.address)

        self._transition(run, SwapState.NORMALIZING)
        approval_part = None
        if plan.permit is not None and permit_signature is not None:
            approval_part = SignedPayload(plan.permit, self.codec.normalize(permit_signature))
        trade_part = SignedPayload(quote.trade, self.codec.normalize(trade_signature))

        self._transition(run, SwapState.SUBMITTING)
        record = await self.relay.submit(
            chain_id=request.chain_id,
            approval=approval_part,
            trade=trade_part,
        )
        log = log.bind(trade_hash=record.trade_hash)
        log.info("trade_submitted")

        self._transition(run, SwapState.POLLING)

        async def fetch_status() -> StatusSnapshot:
            return await self.relay.status(chain_id=request.chain_id, trade_hash=record.trade_hash)

        result = await self.poller.poll(fetch_status)
        if result.confirmed:
            self._transition(run, SwapState.CONFIRMED)
            log.info("trade_confirmed", attempts=result.attempts, tx_hash=result.snapshot.last_tx_hash)
        else:
            self._transition(run, SwapState.TIMED_OUT)
            log.warning("trade_unconfirmed", attempts=result.attempts)

        return SwapOutcome(
            state=run.state,
            trade_hash=record.trade_hash,
            zid=record.zid or quote.zid,
            attempts=result.attempts,
            approval_mechanism=plan.mechanism,
            last_status=result.snapshot,
            approval_user_op_hash=approval_user_op_hash,
            history=run.snapshot(),
        )

    async def _approve_onchain(self, plan: ApprovalPlan, log: structlog.stdlib.BoundLogger) -> Optional[str]:
        if plan.mechanism != ApprovalMechanism.ONCHAIN or plan.call is None:
            return None

        call = plan.call
        log.info("onchain_approval", token=call.token, spender=call.spender, amount=str(call.amount))
        account = self.smart_account.account
        user_op_hash = await account.send_user_operation([call.to_call()])
        receipt = await account.wait_for_user_operation_receipt(user_op_hash)
        if not receipt.success:
            raise ApprovalFailedError(user_op_hash, receipt.transaction_hash)
        log.info("onchain_approval_confirmed", user_op_hash=user_op_hash, tx_hash=receipt.transaction_hash)
        return user_op_hash
