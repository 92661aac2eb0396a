"""Transport layer implementations."""

from .base import (
    MAX_DATAGRAM,
    AsyncTransport,
    Transport,
    TransportError,
    TransportBindError,
    TransportReceiveError,
    TransportSendError,
    TransportTimeoutError,
)
from .udp import AsyncUDPTransport, UDPTransport
from .mock import AsyncMockTransport, MockTransport
from .null import AsyncNullTransport, NullTransport
from .http import AsyncHTTPDelivery, DeliveryError, HTTPDelivery
