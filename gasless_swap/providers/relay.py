"""Async client for the 0x gasless relay API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from ..config import RelayConfig
from ..core.gasless.errors import RelayError
from ..core.gasless.models import Quote, SignedPayload, StatusSnapshot, SubmissionRecord


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class GaslessRelayClient:
    """Thin wrapper around the ``/gasless`` quote, submit and status endpoints.

    Every call is a single request/response pair. Retries belong to the
    caller.
    """

    def __init__(
        self,
        config: RelayConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.api_key = config.api_key
        self.api_version = config.api_version
        self.timeout_s = config.timeout_s
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "accept": "application/json",
            "0x-api-key": self.api_key,
            "0x-version": self.api_version,
        }

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        model: Type[ModelT],
        *,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> ModelT:
        merged_headers = {**self._headers(), **(headers or {})}

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, headers=merged_headers, **kwargs)
        except httpx.RequestError as exc:
            raise RelayError(operation, None, str(exc)) from exc

        if not response.is_success:
            raise RelayError(operation, response.status_code, response.text)

        # JSONDecodeError and pydantic's ValidationError are both ValueErrors
        try:
            return model.model_validate(response.json())
        except ValueError as exc:
            raise RelayError(operation, response.status_code, f"unexpected response body: {exc}") from exc

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
        params = {
            "chainId": str(chain_id),
            "buyToken": buy_token,
            "sellToken": sell_token,
            "sellAmount": str(sell_amount),
            "taker": taker,
            "slippageBps": str(slippage_bps),
        }
        logger.info(f"Fetching gasless quote {sell_token} -> {buy_token} amount={sell_amount} chain={chain_id}")
        return await self._request("fetch quote", "GET", "/gasless/quote", Quote, params=params)

    async def submit(
        self,
        *,
        chain_id: int,
        approval: Optional[SignedPayload],
        trade: SignedPayload,
    ) -> SubmissionRecord:
        body = {
            "chainId": chain_id,
            "approval": approval.to_dict() if approval is not None else None,
            "trade": trade.to_dict(),
        }
        logger.info(f"Submitting gasless trade {trade.payload.hash} chain={chain_id}")
        return await self._request(
            "submit",
            "POST",
            "/gasless/submit",
            SubmissionRecord,
            json=body,
            headers={"content-type": "application/json"},
        )

    async def status(self, *, chain_id: int, trade_hash: str) -> StatusSnapshot:
        return await self._request(
            "fetch status",
            "GET",
            f"/gasless/status/{trade_hash}",
            StatusSnapshot,
            params={"chainId": str(chain_id)},
        )
