"""Typed models used by the gasless swap subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .signature import NormalizedSignature


PERMIT_PAYLOAD_TYPE = "permit"
CONFIRMED_STATUS = "confirmed"

_TYPED_DATA_KEYS = ("types", "domain", "primaryType", "message")


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class SignPayload(_WireModel):
    """An EIP-712 payload the relay asks us to sign."""

    type: str = Field(description="Payload discriminant (permit or a settlement type)")
    hash: str = Field(description="Relay-computed EIP-712 hash")
    eip712: Dict[str, Any] = Field(description="Typed data: types, domain, primaryType, message")

    @field_validator("eip712")
    @classmethod
    def _check_typed_data(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        missing = [key for key in _TYPED_DATA_KEYS if key not in value]
        if missing:
            raise ValueError(f"eip712 payload missing keys: {', '.join(missing)}")
        return value

    @property
    def is_permit(self) -> bool:
        return self.type == PERMIT_PAYLOAD_TYPE

    @property
    def typed_data(self) -> Dict[str, Any]:
        return {key: self.eip712[key] for key in _TYPED_DATA_KEYS}


@dataclass(frozen=True)
class SignedPayload:
    """A payload together with its normalized signature, as the relay accepts it."""

    payload: SignPayload
    signature: NormalizedSignature

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.payload.type,
            "hash": self.payload.hash,
            "eip712": self.payload.eip712,
            "signature": self.signature.to_dict(),
        }


class AllowanceIssue(_WireModel):
    actual: str
    spender: str


class BalanceIssue(_WireModel):
    token: str
    actual: str
    expected: str


class QuoteIssues(_WireModel):
    allowance: Optional[AllowanceIssue] = None
    balance: Optional[BalanceIssue] = None
    simulation_incomplete: bool = False
    invalid_sources_passed: List[str] = Field(default_factory=list)


class Quote(_WireModel):
    """Gasless quote. Only ``liquidity_available`` and ``zid`` are guaranteed when no route exists."""

    liquidity_available: bool
    zid: Optional[str] = None
    allowance_target: Optional[str] = None
    approval: Optional[SignPayload] = None
    block_number: Optional[int] = None
    buy_quantity: Optional[str] = None
    buy_token: Optional[str] = None
    min_buy_quantity: Optional[str] = None
    sell_quantity: Optional[str] = None
    sell_token: Optional[str] = None
    target: Optional[str] = None
    token_metadata: Optional[Dict[str, Any]] = None
    trade: Optional[SignPayload] = None
    issues: QuoteIssues = Field(default_factory=QuoteIssues)

    @field_validator("issues", mode="before")
    @classmethod
    def _default_issues(cls, value: Any) -> Any:
        return QuoteIssues() if value is None else value


class SubmissionRecord(_WireModel):
    trade_hash: str = Field(alias="tradeHash")
    type: Optional[str] = None
    zid: Optional[str] = None


class StatusSnapshot(_WireModel):
    status: str
    transactions: List[Dict[str, Any]] = Field(default_factory=list)
    zid: Optional[str] = None

    @field_validator("transactions", mode="before")
    @classmethod
    def _default_transactions(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def is_confirmed(self) -> bool:
        return self.status.lower() == CONFIRMED_STATUS

    @property
    def last_tx_hash(self) -> Optional[str]:
        if not self.transactions:
            return None
        return self.transactions[-1].get("txHash")


@dataclass(frozen=True)
class SwapRequest:
    """What to swap. Amounts are in base units of the sell token."""

    chain_id: int
    sell_token: str
    buy_token: str
    sell_amount: int
    slippage_bps: int = 100

    @classmethod
    def from_ui_amount(
        cls,
        *,
        chain_id: int,
        sell_token: str,
        buy_token: str,
        amount: str,
        decimals: int,
        slippage_bps: int = 100,
    ) -> "SwapRequest":
        return cls(
            chain_id=chain_id,
            sell_token=sell_token,
            buy_token=buy_token,
            sell_amount=parse_units(amount, decimals),
            slippage_bps=slippage_bps,
        )


def parse_units(amount: str, decimals: int) -> int:
    """Convert a human readable amount into base units (``"1.5", 6 -> 1500000``)."""

    try:
        value = Decimal(amount)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {amount!r}") from exc
    if value < 0:
        raise ValueError("Amount must be non-negative")
    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount} has more than {decimals} decimal places")
    return int(scaled)


class ApprovalMechanism(str, Enum):
    ONCHAIN = "onchain"
    PERMIT = "permit"
    NONE = "none"


@dataclass(frozen=True)
class ApprovalCall:
    """An ERC-20 ``approve(spender, amount)`` call on the sell token."""

    token: str
    spender: str
    amount: int
    data: str

    def to_call(self) -> Dict[str, Any]:
        return {"to": self.token, "value": 0, "data": self.data}


@dataclass(frozen=True)
class ApprovalPlan:
    mechanism: ApprovalMechanism
    permit: Optional[SignPayload] = None
    call: Optional[ApprovalCall] = None


class SwapState(str, Enum):
    """Orchestrator states, in the order a run moves through them."""
    QUOTING = "quoting"
    RESOLVING_APPROVAL = "resolving_approval"
    ONCHAIN_APPROVING = "onchain_approving"
    PERMIT_SIGNING = "permit_signing"
    NO_APPROVAL = "no_approval"
    TRADE_SIGNING = "trade_signing"
    NORMALIZING = "normalizing"
    SUBMITTING = "submitting"
    POLLING = "polling"
    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class PollResult:
    confirmed: bool
    attempts: int
    snapshot: Optional[StatusSnapshot] = None


@dataclass
class SwapOutcome:
    """Terminal result of a run that did not abort."""

    state: SwapState
    trade_hash: str
    zid: Optional[str]
    attempts: int
    approval_mechanism: ApprovalMechanism
    last_status: Optional[StatusSnapshot] = None
    approval_user_op_hash: Optional[str] = None
    history: Tuple[SwapState, ...] = field(default_factory=tuple)

    @property
    def confirmed(self) -> bool:
        return self.state == SwapState.CONFIRMED

    @property
    def tx_hash(self) -> Optional[str]:
        return self.last_status.last_tx_hash if self.last_status else None
