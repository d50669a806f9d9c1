"""
Approval resolution for gasless quotes.

A quote either carries a permit payload (sign it off-chain with the owner key)
or reports an allowance shortfall that has to be fixed with an on-chain
``approve`` sent through the smart account.
"""

from __future__ import annotations

from typing import Optional

from ..execution.userop_builder import build_erc20_approve_call_data
from .errors import QuoteUnavailableError
from .models import (
    ApprovalCall,
    ApprovalMechanism,
    ApprovalPlan,
    Quote,
    SignPayload,
)


class ApprovalResolver:
    """Decides which approval mechanism a quote requires."""

    def needs_onchain_approval(self, quote: Quote) -> bool:
        if quote.approval is not None:
            return False
        allowance = quote.issues.allowance
        if allowance is None:
            return False
        return int(allowance.actual) < int(quote.sell_quantity or 0)

    def permit_payload(self, quote: Quote) -> Optional[SignPayload]:
        return quote.approval

    def onchain_approval_call(self, quote: Quote) -> Optional[ApprovalCall]:
        if not self.needs_onchain_approval(quote):
            return None
        if not quote.sell_token:
            raise QuoteUnavailableError("Quote requires an approval but does not name the sell token")

        spender = quote.issues.allowance.spender
        amount = int(quote.sell_quantity)
        return ApprovalCall(
            token=quote.sell_token,
            spender=spender,
            amount=amount,
            data=build_erc20_approve_call_data(spender, amount),
        )

    def resolve(self, quote: Quote) -> ApprovalPlan:
        permit = self.permit_payload(quote)
        if permit is not None:
            return ApprovalPlan(mechanism=ApprovalMechanism.PERMIT, permit=permit)

        call = self.onchain_approval_call(quote)
        if call is not None:
            return ApprovalPlan(mechanism=ApprovalMechanism.ONCHAIN, call=call)

        return ApprovalPlan(mechanism=ApprovalMechanism.NONE)
