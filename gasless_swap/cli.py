#!/usr/bin/env python3
"""Command line entry point for running a single gasless swap."""

import argparse
import asyncio
import sys
from typing import Optional, Sequence

import structlog

from .config import Settings, get_settings
from .core.execution.smart_account import BundlerSmartAccount, LocalAccountSigner
from .core.gasless import (
    GaslessSwapError,
    NoLiquidityError,
    OwnerIdentity,
    SmartAccountIdentity,
    SubmissionOrchestrator,
    SwapOutcome,
    SwapRequest,
)
from .logging_config import setup_logging
from .providers.bundler import BundlerProvider
from .providers.paymaster import PaymasterProvider
from .providers.relay import GaslessRelayClient
from .providers.rpc import ChainClient


EXIT_CONFIRMED = 0
EXIT_TIMED_OUT = 1
EXIT_NO_LIQUIDITY = 2
EXIT_FAILED = 3

logger = structlog.stdlib.get_logger("gasless.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run a gasless token swap through the 0x relay")
    parser.add_argument("--sell-token", help="Token to sell (defaults to SELL_TOKEN)")
    parser.add_argument("--buy-token", help="Token to buy (defaults to BUY_TOKEN)")
    parser.add_argument("--amount", help="Sell amount in UI units (defaults to SELL_AMOUNT)")
    parser.add_argument("--decimals", type=int, help="Sell token decimals (defaults to SELL_DECIMALS)")
    parser.add_argument("--slippage-bps", type=int, help="Slippage tolerance in basis points")
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    return parser


def build_request(settings: Settings, args: argparse.Namespace) -> SwapRequest:
    return SwapRequest.from_ui_amount(
        chain_id=settings.chain_id,
        sell_token=args.sell_token or settings.sell_token,
        buy_token=args.buy_token or settings.buy_token,
        amount=args.amount or settings.sell_amount,
        decimals=args.decimals if args.decimals is not None else settings.sell_decimals,
        slippage_bps=args.slippage_bps if args.slippage_bps is not None else settings.slippage_bps,
    )


def build_orchestrator(settings: Settings) -> SubmissionOrchestrator:
    owner = LocalAccountSigner.from_private_key(settings.private_key)
    bundler = BundlerProvider(settings.bundler_url)
    paymaster = PaymasterProvider(settings.paymaster_url, rpc_method=settings.paymaster_rpc_method)
    smart_account = BundlerSmartAccount(
        owner,
        address=settings.smart_account_address or owner.address,
        chain_id=settings.chain_id,
        entry_point=settings.entry_point_address,
        bundler=bundler,
        chain=ChainClient(settings.rpc_url),
        paymaster=paymaster if settings.paymaster_url else None,
    )
    return SubmissionOrchestrator(
        settings.swap_config(),
        GaslessRelayClient(settings.relay_config()),
        OwnerIdentity(owner),
        SmartAccountIdentity(smart_account),
    )


def print_outcome(outcome: SwapOutcome) -> None:
    print("=" * 80)
    if outcome.confirmed:
        print("✅ Transaction confirmed!")
        if outcome.tx_hash:
            print(f"   TX Hash: {outcome.tx_hash}")
    else:
        print(f"⚠️  Transaction not confirmed after {outcome.attempts} attempts")
    print(f"   Trade hash: {outcome.trade_hash}")
    print(f"   ZID: {outcome.zid}")
    print(f"   Approval: {outcome.approval_mechanism.value}")


async def run_swap(settings: Settings, request: SwapRequest) -> int:
    orchestrator = build_orchestrator(settings)
    try:
        outcome = await orchestrator.run(request)
    except NoLiquidityError as exc:
        logger.error("no_route", zid=exc.zid)
        print("❌ No liquidity available for this pair")
        return EXIT_NO_LIQUIDITY
    except GaslessSwapError as exc:
        state = exc.state.value if exc.state else None
        logger.error("swap_failed", category=exc.category.value, error=exc.message, state=state)
        print(f"❌ Swap failed: {exc.message}")
        return EXIT_FAILED
    finally:
        await orchestrator.smart_account.account.aclose()

    print_outcome(outcome)
    return EXIT_CONFIRMED if outcome.confirmed else EXIT_TIMED_OUT


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.log_level)

    missing = [
        name
        for name, present in (
            ("ZEROX_API_KEY", settings.has_zerox_key),
            ("PRIVATE_KEY", settings.has_private_key),
            ("PIMLICO_API_KEY or BUNDLER_URL", settings.has_bundler),
        )
        if not present
    ]
    if missing:
        print(f"❌ Missing configuration: {', '.join(missing)}")
        return EXIT_FAILED

    try:
        request = build_request(settings, args)
    except ValueError as exc:
        print(f"❌ {exc}")
        return EXIT_FAILED

    return asyncio.run(run_swap(settings, request))


if __name__ == "__main__":
    sys.exit(main())
