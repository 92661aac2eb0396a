"""In-memory transports for deterministic testing.

A mock transport is seeded with inbound datagrams and records every
outbound send instead of touching the network. Sends can be made to fail
on demand to exercise error handling.
"""

from __future__ import annotations

import asyncio
import collections
import threading
from typing import Iterable, List, Optional, Tuple

from .. import json
from .base import (
    MAX_DATAGRAM,
    Address,
    AsyncTransport,
    Transport,
    TransportSendError,
)


class _Mock:

    def __init__(self, inbound=()):
        self.inbound = collections.deque()
        self.sent: List[Tuple[bytes, Address]] = []
        self.closed = False
        self.failures = 0
        self._lock = threading.Lock()

        self.feed(*inbound)

    def feed(self, *datagrams) -> None:
        """ Queue *datagrams* for ``receive()``. Each may be bytes, a str
            (encoded as UTF-8), or any other JSON-compatible value, which
            is encoded as a JSON document.
        """

        with self._lock:
            for datagram in datagrams:
                if isinstance(datagram, str):
                    datagram = datagram.encode()
                elif not isinstance(datagram, (bytes, bytearray)):
                    datagram = json.dumps(datagram)
                self.inbound.append(bytes(datagram))

    def fail_next(self, count: int = 1) -> None:
        """Make the next *count* sends raise :class:`TransportSendError`."""
        with self._lock:
            self.failures += count

    def sent_messages(self) -> list:
        """Decode every datagram sent so far."""
        with self._lock:
            return [json.loads(data) for data, _destination in self.sent]

    def _send(self, data: bytes, destination: Address) -> int:
        with self._lock:
            if self.failures:
                self.failures -= 1
                raise TransportSendError("mock send failure")

            self.sent.append((bytes(data), destination))

        return len(data)

    def _receive(self, size: int) -> Optional[bytes]:
        with self._lock:
            try:
                datagram = self.inbound.popleft()
            except IndexError:
                return None

        return datagram[:size]

    def close(self) -> None:
        self.closed = True


class MockTransport(_Mock, Transport):

    def __init__(self, inbound: Iterable = ()):
        _Mock.__init__(self, inbound)
        self.read_timeout: Optional[float] = None
        self.write_timeout: Optional[float] = None

    @classmethod
    def bind(cls, addresses: Iterable[Address]) -> "MockTransport":
        return cls()

    def set_read_timeout(self, timeout: Optional[float]) -> None:
        self.read_timeout = timeout

    def set_write_timeout(self, timeout: Optional[float]) -> None:
        self.write_timeout = timeout

    def send_to(self, data: bytes, destination: Address) -> int:
        return self._send(data, destination)

    def receive(self, size: int = MAX_DATAGRAM) -> Optional[bytes]:
        return self._receive(size)


class AsyncMockTransport(_Mock, AsyncTransport):
    """ Coroutine flavor of :class:`MockTransport`. Every send yields to the
        event loop once before recording, so concurrent senders interleave
        the way they would against a real socket.
    """

    @classmethod
    async def bind(cls, addresses: Iterable[Address]) -> "AsyncMockTransport":
        return cls()

    async def send_to(self, data: bytes, destination: Address) -> int:
        await asyncio.sleep(0)
        return self._send(data, destination)

    async def receive(self, size: int = MAX_DATAGRAM) -> Optional[bytes]:
        return self._receive(size)
