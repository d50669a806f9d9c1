"""
Error taxonomy for gasless swap runs.

Every failure raised by the core is fatal to the run it occurs in. Polling
exhaustion is not an error and never raises.
"""

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """Categories of failures, used by callers to pick a presentation."""

    PROVIDER = "provider"                # Relay or account-abstraction provider failure
    LIQUIDITY = "liquidity"              # No route for the requested pair
    VALIDATION = "validation"            # Malformed input (e.g. signature)
    TRANSACTION_REVERTED = "transaction_reverted"
    INTERNAL = "internal"


class GaslessSwapError(Exception):
    """Base class for all gasless swap failures."""

    category: ErrorCategory = ErrorCategory.INTERNAL
    # SwapState the run was in when this was raised; set by the orchestrator
    state = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RelayError(GaslessSwapError):
    """Non-2xx response (or transport failure) from the relay API."""

    category = ErrorCategory.PROVIDER

    def __init__(self, operation: str, status_code: Optional[int], body: str):
        if status_code is None:
            message = f"Failed to {operation}: {body}"
        else:
            message = f"Failed to {operation}: {status_code} {body}"
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
        self.body = body


class SignatureDecodeError(GaslessSwapError):
    """Raw signature is not a 65-byte hex string."""

    category = ErrorCategory.VALIDATION


class NoLiquidityError(GaslessSwapError):
    """The relay has no route for the requested swap."""

    category = ErrorCategory.LIQUIDITY

    def __init__(self, zid: Optional[str] = None):
        super().__init__("No liquidity available for the requested swap")
        self.zid = zid


class QuoteUnavailableError(GaslessSwapError):
    """Quote reports liquidity but carries no trade payload."""

    category = ErrorCategory.PROVIDER


class ApprovalFailedError(GaslessSwapError):
    """On-chain approval user operation did not succeed."""

    category = ErrorCategory.TRANSACTION_REVERTED

    def __init__(self, user_op_hash: str, transaction_hash: Optional[str] = None):
        super().__init__(f"Approval user operation {user_op_hash} failed")
        self.user_op_hash = user_op_hash
        self.transaction_hash = transaction_hash


class SmartAccountError(GaslessSwapError):
    """Smart account could not build, send or track a user operation."""

    category = ErrorCategory.PROVIDER


class InvalidTransitionError(GaslessSwapError):
    """Orchestrator attempted a transition outside the forward-only map."""

    def __init__(self, from_state: str, to_state: str):
        super().__init__(f"Invalid transition from {from_state} to {to_state}")
        self.from_state = from_state
        self.to_state = to_state
