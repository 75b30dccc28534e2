"""Payment-aware request pipeline.

Wraps an httpx client: a request answered with HTTP 402 is paid with the
signer registered for the challenge's network and re-issued exactly once.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import httpx

from .challenge import PaymentChallenge, parse_challenges
from .constants import HTTP_STATUS_PAYMENT_REQUIRED
from .errors import (
    PaymentRejectedError,
    SigningError,
    TransportError,
    UnsupportedNetworkError,
)
from .payment import PaymentToken, decode_payment_response
from .registry import NetworkSignerRegistry
from .signers import NetworkSigner

logger = logging.getLogger(__name__)

STAGE_INITIAL = "initial"
STAGE_RETRY = "retry"


@dataclass
class PipelineResult:
    """Final response of a pipeline call."""

    response: httpx.Response
    paid: bool = False
    token: Optional[PaymentToken] = None
    settlement: Optional[Dict[str, Any]] = None

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers

    @property
    def body(self) -> bytes:
        return self.response.content

    @property
    def text(self) -> str:
        return self.response.text

    def json(self) -> Any:
        return self.response.json()

    @property
    def is_success(self) -> bool:
        return self.response.is_success


def _apply_timeout(request: httpx.Request, timeout: Optional[float]) -> None:
    if timeout is not None:
        request.extensions["timeout"] = httpx.Timeout(timeout).as_dict()


def _transport_error(exc: httpx.TransportError, request: httpx.Request, stage: str) -> TransportError:
    return TransportError(
        f"{stage} request {request.method} {request.url} failed: {exc.__class__.__name__}: {exc}",
        stage=stage,
    )


def _select_challenge(
    registry: NetworkSignerRegistry, response: httpx.Response
) -> Tuple[PaymentChallenge, NetworkSigner]:
    challenges = parse_challenges(response)
    for challenge in challenges:
        signer = registry.find(challenge.network)
        if signer is not None:
            logger.info(
                "402 challenge: %s %s on %s to %s, signing with %s",
                challenge.amount,
                challenge.asset,
                challenge.network,
                challenge.recipient,
                signer.network,
            )
            return challenge, signer

    offered = [challenge.network for challenge in challenges]
    logger.warning("402 challenge for unsupported network(s): %s", ", ".join(offered))
    raise UnsupportedNetworkError(
        f"No signer configured for network {', '.join(offered)} "
        f"(configured: {', '.join(registry.networks) or 'none'})",
        network=offered[0],
        offered=offered,
    )


def _sign(signer: NetworkSigner, challenge: PaymentChallenge) -> PaymentToken:
    try:
        return signer.sign(challenge)
    except SigningError:
        raise
    except Exception as exc:
        raise SigningError(
            f"Failed to sign payment on {challenge.network}: {exc}", network=challenge.network
        ) from exc


def _with_payment(request: httpx.Request, token: PaymentToken) -> httpx.Request:
    headers = request.headers.copy()
    headers[token.header_name] = token.encode()
    return httpx.Request(
        request.method,
        request.url,
        headers=headers,
        content=request.content,
        extensions=dict(request.extensions),
    )


def _finish(
    response: httpx.Response, challenge: PaymentChallenge, token: PaymentToken
) -> PipelineResult:
    if response.status_code == HTTP_STATUS_PAYMENT_REQUIRED:
        logger.warning("payment on %s rejected by %s", challenge.network, response.request.url)
        raise PaymentRejectedError(response.status_code, network=challenge.network, body=response.content)

    settlement = decode_payment_response(response.headers)
    logger.info(
        "paid request %s completed with status %s (transaction=%s)",
        response.request.url,
        response.status_code,
        (settlement or {}).get("transaction"),
    )
    return PipelineResult(response=response, paid=True, token=token, settlement=settlement)


class PaymentPipeline:
    """Synchronous pipeline on top of ``httpx.Client``."""

    def __init__(
        self,
        registry: NetworkSignerRegistry,
        client: Optional[httpx.Client] = None,
        base_url: str = "",
        timeout: float = 30.0,
    ) -> None:
        self._registry = registry
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(base_url=base_url, timeout=timeout)

    @property
    def registry(self) -> NetworkSignerRegistry:
        return self._registry

    def _send(self, request: httpx.Request, stage: str) -> httpx.Response:
        try:
            return self._client.send(request)
        except httpx.TransportError as exc:
            raise _transport_error(exc, request, stage) from exc

    def execute(self, request: httpx.Request, *, timeout: Optional[float] = None) -> PipelineResult:
        request.read()
        _apply_timeout(request, timeout)

        response = self._send(request, STAGE_INITIAL)
        if response.status_code != HTTP_STATUS_PAYMENT_REQUIRED:
            return PipelineResult(response=response)

        challenge, signer = _select_challenge(self._registry, response)
        token = _sign(signer, challenge)
        retry_response = self._send(_with_payment(request, token), STAGE_RETRY)
        return _finish(retry_response, challenge, token)

    def request(self, method: str, url: str, *, timeout: Optional[float] = None, **kwargs: Any) -> PipelineResult:
        return self.execute(self._client.build_request(method, url, **kwargs), timeout=timeout)

    def get(self, url: str, **kwargs: Any) -> PipelineResult:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> PipelineResult:
        return self.request("POST", url, **kwargs)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "PaymentPipeline":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class AsyncPaymentPipeline:
    """Asynchronous pipeline on top of ``httpx.AsyncClient``.

    Cancelling the awaiting task aborts the in-flight request; no retry is
    attempted afterwards.
    """

    def __init__(
        self,
        registry: NetworkSignerRegistry,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = "",
        timeout: float = 30.0,
    ) -> None:
        self._registry = registry
        self._owns_client = client is None
        self._client = (
            client if client is not None else httpx.AsyncClient(base_url=base_url, timeout=timeout)
        )

    @property
    def registry(self) -> NetworkSignerRegistry:
        return self._registry

    async def _send(self, request: httpx.Request, stage: str) -> httpx.Response:
        try:
            return await self._client.send(request)
        except httpx.TransportError as exc:
            raise _transport_error(exc, request, stage) from exc

    async def execute(self, request: httpx.Request, *, timeout: Optional[float] = None) -> PipelineResult:
        await request.aread()
        _apply_timeout(request, timeout)

        response = await self._send(request, STAGE_INITIAL)
        if response.status_code != HTTP_STATUS_PAYMENT_REQUIRED:
            return PipelineResult(response=response)

        challenge, signer = _select_challenge(self._registry, response)
        # Library signers may block on RPC calls (e.g. fetching a blockhash).
        token = await asyncio.to_thread(_sign, signer, challenge)
        retry_response = await self._send(_with_payment(request, token), STAGE_RETRY)
        return _finish(retry_response, challenge, token)

    async def request(
        self, method: str, url: str, *, timeout: Optional[float] = None, **kwargs: Any
    ) -> PipelineResult:
        return await self.execute(self._client.build_request(method, url, **kwargs), timeout=timeout)

    async def get(self, url: str, **kwargs: Any) -> PipelineResult:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> PipelineResult:
        return await self.request("POST", url, **kwargs)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncPaymentPipeline":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
