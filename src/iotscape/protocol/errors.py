"""Protocol-level exceptions.

Transport failures live in :mod:`iotscape.transport.base`; the exceptions
here describe problems with message content.
"""


class ProtocolError(Exception):
    """Base class for all protocol-layer errors."""


class ParseError(ProtocolError):
    """An inbound datagram is not a well-formed IoTScape request."""


class SerializationError(ProtocolError):
    """An outbound entity could not be encoded as JSON.

    Internally constructed messages always encode; seeing this exception
    means a caller put something that is not JSON-compatible into a
    response or definition.
    """


class ApplicationError(Exception):
    """A request failed in application code.

    The message is delivered to the server in the ``error`` field of the
    response correlated to the failing request. Raise it from a handler,
    or pass an instance as ``error=`` to ``enqueue_response_to()``.
    """
