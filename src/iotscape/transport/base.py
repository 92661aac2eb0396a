"""Transport interface.

This is the (small) contract that transport implementations should follow.
It lives outside :mod:`iotscape.protocol` so the protocol remains
transport-agnostic. A transport moves whole datagrams: one call to
``send_to()`` puts exactly one datagram on the wire, one call to
``receive()`` returns exactly one datagram, or None when nothing is waiting.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Tuple

Address = Tuple[str, int]

# Largest payload a single UDP datagram can carry; anything bigger would need
# fragmentation, which this protocol never does.

MAX_DATAGRAM = 65535


# Transport agnostic exceptions

class TransportError(Exception):
    """Base class for all transport-layer errors."""


class TransportBindError(TransportError):
    """No candidate local address could be bound."""


class TransportSendError(TransportError):
    """A datagram could not be handed to the network."""


class TransportReceiveError(TransportError):
    """Reading from the transport failed for a reason other than no data."""


class TransportTimeoutError(TransportError):
    """A timeout could not be applied to the transport."""


class Transport(ABC):
    """Minimal contract for a blocking-with-timeout datagram transport."""

    @classmethod
    @abstractmethod
    def bind(cls, addresses: Iterable[Address]) -> "Transport":
        """Bind to the first usable candidate local address."""

    @abstractmethod
    def send_to(self, data: bytes, destination: Address) -> int:
        """Send one datagram; return the number of bytes sent."""

    @abstractmethod
    def receive(self, size: int = MAX_DATAGRAM) -> Optional[bytes]:
        """Return the next datagram, or None if none arrived in time."""

    def set_read_timeout(self, timeout: Optional[float]) -> None:
        """Bound how long ``receive()`` may wait; None means do not wait."""

    def set_write_timeout(self, timeout: Optional[float]) -> None:
        """Bound how long ``send_to()`` may wait; None means do not wait."""

    def close(self) -> None:
        """Release the underlying socket, if any."""

    @property
    def local_address(self) -> Optional[Address]:
        return None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class AsyncTransport(ABC):
    """Coroutine flavor of :class:`Transport` for use on an event loop.

    ``receive()`` never waits: it returns None immediately when nothing is
    queued, so a poll cycle can hand control back to the loop.
    """

    @classmethod
    @abstractmethod
    async def bind(cls, addresses: Iterable[Address]) -> "AsyncTransport":
        """Bind to the first usable candidate local address."""

    @abstractmethod
    async def send_to(self, data: bytes, destination: Address) -> int:
        """Send one datagram; return the number of bytes sent."""

    @abstractmethod
    async def receive(self, size: int = MAX_DATAGRAM) -> Optional[bytes]:
        """Return the next datagram, or None if none is queued."""

    def close(self) -> None:
        """Release the underlying socket, if any."""

    @property
    def local_address(self) -> Optional[Address]:
        return None
