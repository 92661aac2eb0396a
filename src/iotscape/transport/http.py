"""HTTP delivery for announce and response payloads.

For deployments where the server cannot reach the service's UDP endpoint,
the same JSON documents can be POSTed to HTTP endpoints instead. The
payload contract is identical to the datagram path; only the carrier
differs, and the caller chooses it explicitly for each call.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..protocol.message import Response
from .base import TransportSendError

logger = logging.getLogger(__name__)

headers = {"Content-Type": "application/json"}


class DeliveryError(TransportSendError):
    """An HTTP POST failed, or no endpoint was configured for it."""


def _require(url: Optional[str], what: str) -> str:
    if not url:
        raise DeliveryError(f"no {what} endpoint configured")
    return url


class HTTPDelivery:
    """ Post payloads with a synchronous :class:`httpx.Client`. A client may
        be supplied (for connection reuse or testing); otherwise one is
        created and owned by this instance.
    """

    def __init__(self, announce_url: Optional[str] = None, response_url: Optional[str] = None,
                 timeout: float = 5.0, client: Optional[httpx.Client] = None):
        self.announce_url = announce_url
        self.response_url = response_url
        self._owned = client is None
        self.client = client if client is not None else httpx.Client(timeout=timeout)

    def _post(self, url: str, payload: bytes) -> int:
        try:
            reply = self.client.post(url, content=payload, headers=headers)
            reply.raise_for_status()
        except httpx.HTTPError as exc:
            raise DeliveryError(f"POST {url} failed: {exc}") from exc

        logger.debug("posted %d bytes to %s", len(payload), url)
        return len(payload)

    def announce(self, payload: bytes) -> int:
        return self._post(_require(self.announce_url, "announce"), payload)

    def send_response(self, response: Response) -> int:
        return self._post(_require(self.response_url, "response"), response.to_bytes())

    def close(self) -> None:
        if self._owned:
            self.client.close()


class AsyncHTTPDelivery:
    """Coroutine flavor of :class:`HTTPDelivery` over :class:`httpx.AsyncClient`."""

    def __init__(self, announce_url: Optional[str] = None, response_url: Optional[str] = None,
                 timeout: float = 5.0, client: Optional[httpx.AsyncClient] = None):
        self.announce_url = announce_url
        self.response_url = response_url
        self._owned = client is None
        self.client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    async def _post(self, url: str, payload: bytes) -> int:
        try:
            reply = await self.client.post(url, content=payload, headers=headers)
            reply.raise_for_status()
        except httpx.HTTPError as exc:
            raise DeliveryError(f"POST {url} failed: {exc}") from exc

        logger.debug("posted %d bytes to %s", len(payload), url)
        return len(payload)

    async def announce(self, payload: bytes) -> int:
        return await self._post(_require(self.announce_url, "announce"), payload)

    async def send_response(self, response: Response) -> int:
        return await self._post(_require(self.response_url, "response"), response.to_bytes())

    async def aclose(self) -> None:
        if self._owned:
            await self.client.aclose()
