"""UDP datagram transport.

The live network carrier for IoTScape: one JSON document per datagram,
sent from an ephemeral local port to the fixed server address. The socket
is always non-blocking at rest; :class:`UDPTransport` applies the read or
write timeout around each individual call, and :class:`AsyncUDPTransport`
never waits at all, leaving scheduling to the event loop.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Iterable, Optional

from .base import (
    MAX_DATAGRAM,
    Address,
    AsyncTransport,
    Transport,
    TransportBindError,
    TransportReceiveError,
    TransportSendError,
    TransportTimeoutError,
)

logger = logging.getLogger(__name__)

# A read that finds nothing raises one of these, depending on whether the
# socket had a timeout or was purely non-blocking.

no_data = (BlockingIOError, TimeoutError)


def bind_socket(addresses: Iterable[Address]) -> socket.socket:
    """ Return a non-blocking UDP socket bound to the first usable address
        in *addresses*. Port zero requests an ephemeral port.
    """

    failures = list()

    for host, port in addresses:
        family = socket.AF_INET6 if ':' in host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_DGRAM)

        try:
            sock.bind((host, int(port)))
        except OSError as exc:
            sock.close()
            failures.append(f"{host}:{port}: {exc}")
            continue

        sock.setblocking(False)
        logger.info("bound UDP socket to %s:%d", *sock.getsockname()[:2])
        return sock

    if not failures:
        raise TransportBindError("no candidate addresses to bind")

    raise TransportBindError("could not bind any address (" + "; ".join(failures) + ")")


def _check_size(data):
    if len(data) > MAX_DATAGRAM:
        raise TransportSendError(f"{len(data)} bytes exceeds the {MAX_DATAGRAM} byte datagram limit")


class UDPTransport(Transport):
    """ Blocking-with-timeout UDP transport. A timeout of None (the default)
        means calls never wait: a read with no datagram waiting returns None
        straight away.
    """

    def __init__(self, sock: socket.socket):
        self.socket = sock
        self.read_timeout: Optional[float] = None
        self.write_timeout: Optional[float] = None
        self._applied: Optional[float] = 0.0

    @classmethod
    def bind(cls, addresses: Iterable[Address]) -> "UDPTransport":
        return cls(bind_socket(addresses))

    def _apply(self, timeout: Optional[float]) -> None:
        if timeout is None or timeout <= 0:
            timeout = 0.0

        if timeout != self._applied:
            try:
                self.socket.settimeout(timeout)
            except OSError as exc:
                raise TransportTimeoutError(f"cannot apply timeout {timeout}: {exc}") from exc
            self._applied = timeout

    def set_read_timeout(self, timeout: Optional[float]) -> None:
        self.read_timeout = timeout

    def set_write_timeout(self, timeout: Optional[float]) -> None:
        self.write_timeout = timeout

    def send_to(self, data: bytes, destination: Address) -> int:
        _check_size(data)
        self._apply(self.write_timeout)

        try:
            sent = self.socket.sendto(data, destination)
        except OSError as exc:
            raise TransportSendError(f"send to {destination[0]}:{destination[1]} failed: {exc}") from exc

        logger.debug("sent %d bytes to %s:%d", sent, destination[0], destination[1])
        return sent

    def receive(self, size: int = MAX_DATAGRAM) -> Optional[bytes]:
        self._apply(self.read_timeout)

        try:
            data = self.socket.recv(size)
        except no_data:
            return None
        except OSError as exc:
            raise TransportReceiveError(f"receive failed: {exc}") from exc

        logger.debug("received %d bytes", len(data))
        return data

    def close(self) -> None:
        self.socket.close()

    @property
    def local_address(self) -> Optional[Address]:
        try:
            return self.socket.getsockname()[:2]
        except OSError:
            return None


class AsyncUDPTransport(AsyncTransport):
    """ UDP transport for an asyncio event loop. Sends go through
        :meth:`asyncio.AbstractEventLoop.sock_sendto`, so a full socket
        buffer suspends the sender instead of blocking the loop; reads are
        attempted once and report None if nothing is waiting.

        One instance is shared by every task sending through an engine.
        Each response is a single ``sendto`` call, so datagrams from
        concurrent senders never interleave.
    """

    def __init__(self, sock: socket.socket):
        self.socket = sock

    @classmethod
    async def bind(cls, addresses: Iterable[Address]) -> "AsyncUDPTransport":
        return cls(bind_socket(addresses))

    async def send_to(self, data: bytes, destination: Address) -> int:
        _check_size(data)
        loop = asyncio.get_running_loop()

        try:
            sent = await loop.sock_sendto(self.socket, data, destination)
        except OSError as exc:
            raise TransportSendError(f"send to {destination[0]}:{destination[1]} failed: {exc}") from exc

        logger.debug("sent %d bytes to %s:%d", sent, destination[0], destination[1])
        return sent

    async def receive(self, size: int = MAX_DATAGRAM) -> Optional[bytes]:
        try:
            data = self.socket.recv(size)
        except BlockingIOError:
            return None
        except OSError as exc:
            raise TransportReceiveError(f"receive failed: {exc}") from exc

        logger.debug("received %d bytes", len(data))
        return data

    def close(self) -> None:
        self.socket.close()

    @property
    def local_address(self) -> Optional[Address]:
        try:
            return self.socket.getsockname()[:2]
        except OSError:
            return None
