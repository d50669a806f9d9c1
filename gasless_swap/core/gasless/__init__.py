"""
Gasless swap core.

Usage:
    from gasless_swap.core.gasless import SubmissionOrchestrator, SwapRequest

    orchestrator = SubmissionOrchestrator(config, relay, owner, smart_account)
    outcome = await orchestrator.run(request)
    if outcome.confirmed:
        ...
"""

from .approval import ApprovalResolver
from .errors import (
    ApprovalFailedError,
    ErrorCategory,
    GaslessSwapError,
    InvalidTransitionError,
    NoLiquidityError,
    QuoteUnavailableError,
    RelayError,
    SignatureDecodeError,
    SmartAccountError,
)
from .models import (
    ApprovalCall,
    ApprovalMechanism,
    ApprovalPlan,
    Quote,
    SignedPayload,
    SignPayload,
    StatusSnapshot,
    SubmissionRecord,
    SwapOutcome,
    SwapRequest,
    SwapState,
)
from .orchestrator import SubmissionOrchestrator
from .poller import StatusPoller
from .signature import NormalizedSignature, SignatureCodec, SignatureType, normalize, pad_component
from .signing import OwnerIdentity, SigningCoordinator, SmartAccountIdentity

__all__ = [
    "ApprovalResolver",
    "ApprovalFailedError",
    "ErrorCategory",
    "GaslessSwapError",
    "InvalidTransitionError",
    "NoLiquidityError",
    "QuoteUnavailableError",
    "RelayError",
    "SignatureDecodeError",
    "SmartAccountError",
    "ApprovalCall",
    "ApprovalMechanism",
    "ApprovalPlan",
    "Quote",
    "SignedPayload",
    "SignPayload",
    "StatusSnapshot",
    "SubmissionRecord",
    "SwapOutcome",
    "SwapRequest",
    "SwapState",
    "SubmissionOrchestrator",
    "StatusPoller",
    "NormalizedSignature",
    "SignatureCodec",
    "SignatureType",
    "normalize",
    "pad_component",
    "OwnerIdentity",
    "SigningCoordinator",
    "SmartAccountIdentity",
]
