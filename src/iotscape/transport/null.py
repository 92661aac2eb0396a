"""Discard transports, for running a service with networking disabled.

Every send succeeds and reports the full length; there is never any
incoming data.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .base import MAX_DATAGRAM, Address, AsyncTransport, Transport


class NullTransport(Transport):

    @classmethod
    def bind(cls, addresses: Iterable[Address]) -> "NullTransport":
        return cls()

    def send_to(self, data: bytes, destination: Address) -> int:
        return len(data)

    def receive(self, size: int = MAX_DATAGRAM) -> Optional[bytes]:
        return None


class AsyncNullTransport(AsyncTransport):

    @classmethod
    async def bind(cls, addresses: Iterable[Address]) -> "AsyncNullTransport":
        return cls()

    async def send_to(self, data: bytes, destination: Address) -> int:
        return len(data)

    async def receive(self, size: int = MAX_DATAGRAM) -> Optional[bytes]:
        return None
