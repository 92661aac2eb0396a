"""Convenience constructors for protocol messages."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from .. import json
from .definition import ServiceDefinition
from .errors import SerializationError
from .fields import HEARTBEAT
from .message import Error, EventResponse, Request, Response, Result


def announcement(name: str, definition: ServiceDefinition) -> bytes:
    """Encode the ``{name: definition}`` announce payload."""
    try:
        return json.dumps({name: definition.to_dict()})
    except (json.JSONEncodeError, TypeError) as exc:
        raise SerializationError(f"cannot encode definition for {name!r}: {exc}") from exc


def response_to(request: Request, sender_id: str, result: Optional[Iterable[Any]] = None, error: Any = None) -> Response:
    """Build the response correlated to *request*.

    A non-None *error* (a string or an exception) produces an error body;
    otherwise *result* produces a result body, an empty one if omitted.
    """

    if error is not None:
        if result is not None:
            raise ValueError("a response carries either a result or an error, not both")
        body = Error(str(error))
    else:
        if isinstance(result, (str, bytes, bytearray, Mapping)):
            raise TypeError(f"result must be a sequence of values, not {type(result).__name__}")
        body = Result(() if result is None else result)

    return Response(id=sender_id, request=request.id, service=request.service, body=body)


def event(call_id: str, sender_id: str, service: str, event_type: str, args: Optional[Mapping[str, Any]] = None) -> Response:
    """Build an event response. Event arguments travel as strings, so every
    key and value in *args* is converted with :func:`str`.
    """

    if args is not None:
        args = {str(key): str(value) for key, value in args.items()}

    body = EventResponse(type=event_type, args=args)
    return Response(id=sender_id, request=call_id, service=service, body=body)


def is_heartbeat(request: Request) -> bool:
    return request.function == HEARTBEAT


def heartbeat_reply(request: Request, sender_id: str) -> Response:
    """Create the empty-result response answering a heartbeat."""
    return Response(id=sender_id, request=request.id, service=request.service, body=Result())
