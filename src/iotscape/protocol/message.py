""" A class representation of IoTScape messages: the :class:`Request`
    arriving from the server, and the :class:`Response` sent back to it.

    A :class:`Response` carries exactly one body: a :class:`Result` for a
    successful call, an :class:`EventResponse` for an asynchronous event, or
    an :class:`Error` for a failed call. On the wire these become three
    independently optional fields (``response``, ``event``, ``error``), of
    which exactly one is present; the conversion happens only in
    :func:`Response.to_dict` and :func:`Response.from_dict`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .. import json
from . import fields
from .errors import ParseError, SerializationError


@dataclass(frozen=True)
class Request:
    """ An inbound request from the server. The *id* is assigned by the
        server and is echoed back in the ``request`` field of the
        correlated :class:`Response`.
    """

    id: str
    service: str
    device: str
    function: str
    params: Tuple[Any, ...] = ()
    client_id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "params", tuple(self.params))

    @classmethod
    def from_bytes(cls, data) -> "Request":
        """ Parse one datagram. Raises :class:`ParseError` if the datagram
            is not a JSON object with the required request fields.
        """

        try:
            decoded = json.loads(data)
        except json.JSONDecodeError as exc:
            raise ParseError(f"request is not valid JSON: {exc}") from exc

        return cls.from_dict(decoded)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Request":
        if not isinstance(data, Mapping):
            raise ParseError(f"request must be a JSON object, not {type(data).__name__}")

        values = dict()
        for key in (fields.ID, fields.SERVICE, fields.DEVICE, fields.FUNCTION):
            try:
                value = data[key]
            except KeyError:
                raise ParseError(f"request is missing required field {key!r}") from None

            if not isinstance(value, str):
                raise ParseError(f"request field {key!r} must be a string")

            values[key] = value

        try:
            params = data[fields.PARAMS]
        except KeyError:
            raise ParseError(f"request is missing required field {fields.PARAMS!r}") from None

        if not isinstance(params, list):
            raise ParseError(f"request field {fields.PARAMS!r} must be a list")

        client_id = data.get(fields.CLIENT_ID)
        if client_id is not None and not isinstance(client_id, str):
            raise ParseError(f"request field {fields.CLIENT_ID!r} must be a string")

        return cls(params=params, client_id=client_id, **values)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            fields.ID: self.id,
            fields.SERVICE: self.service,
            fields.DEVICE: self.device,
            fields.FUNCTION: self.function,
            fields.PARAMS: list(self.params),
        }

        if self.client_id is not None:
            result[fields.CLIENT_ID] = self.client_id

        return result


@dataclass(frozen=True)
class Result:
    """Successful call body: the ordered return values. Empty is valid."""

    values: Tuple[Any, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class EventResponse:
    """Event body: the event *type* and its string-valued *args*."""

    type: Optional[str] = None
    args: Optional[Mapping[str, str]] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.type is not None:
            result[fields.TYPE] = self.type
        if self.args is not None:
            result[fields.ARGS] = dict(self.args)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EventResponse":
        return cls(type=data.get(fields.TYPE), args=data.get(fields.ARGS))


@dataclass(frozen=True)
class Error:
    """Failed call body: an application-chosen message."""

    message: str


Body = Union[Result, EventResponse, Error]


class Response:
    """ An outbound message to the server. The *request* field correlates
        the response to the :class:`Request` id it answers, or carries an
        application-chosen token for events; *body* is one of
        :class:`Result`, :class:`EventResponse` or :class:`Error`.

        :ivar id: Identifier of the sending service instance.
        :ivar request: Correlation token.
        :ivar service: Service name.
        :ivar body: The single populated body.
    """

    def __init__(self, id, request, service, body):

        if not isinstance(body, (Result, EventResponse, Error)):
            raise TypeError('response body must be a Result, EventResponse or Error, not ' + type(body).__name__)

        self.id = id
        self.request = request
        self.service = service
        self.body = body

        self._encapsulated = None


    def __repr__(self):
        return 'Response(%r)' % (self.to_dict(),)


    def __eq__(self, other):
        if not isinstance(other, Response):
            return NotImplemented
        return self.to_dict() == other.to_dict()


    @property
    def result(self):
        """ The result values, or None if this is not a call result.
        """

        if isinstance(self.body, Result):
            return list(self.body.values)
        return None


    @property
    def event(self):
        if isinstance(self.body, EventResponse):
            return self.body
        return None


    @property
    def error(self):
        if isinstance(self.body, Error):
            return self.body.message
        return None


    def to_dict(self):
        """ Return the wire representation. Exactly one of ``response``,
            ``event`` and ``error`` is present; absent fields are omitted
            rather than set to null.
        """

        result = dict()
        result[fields.ID] = self.id
        result[fields.REQUEST] = self.request
        result[fields.SERVICE] = self.service

        body = self.body

        if isinstance(body, Result):
            result[fields.RESPONSE] = list(body.values)
        elif isinstance(body, EventResponse):
            result[fields.EVENT] = body.to_dict()
        else:
            result[fields.ERROR] = body.message

        return result


    def to_bytes(self):
        """ Return the JSON encoding of this response. Calling this method
            multiple times will return the cached encoding rather than
            generate it anew.
        """

        if self._encapsulated is not None:
            return self._encapsulated

        try:
            encoded = json.dumps(self.to_dict())
        except (json.JSONEncodeError, TypeError) as exc:
            raise SerializationError(f"cannot encode response to {self.request!r}: {exc}") from exc

        self._encapsulated = encoded
        return encoded


    @classmethod
    def from_dict(cls, data):
        """ Rebuild a :class:`Response` from its wire representation.
        """

        if not isinstance(data, Mapping):
            raise ParseError('response must be a JSON object')

        present = [key for key in (fields.RESPONSE, fields.EVENT, fields.ERROR) if key in data]

        if len(present) != 1:
            raise ParseError('response must carry exactly one of response/event/error, found ' + repr(present))

        key = present[0]

        if key == fields.RESPONSE:
            if not isinstance(data[key], list):
                raise ParseError('response field must be a list')
            body = Result(data[key])
        elif key == fields.EVENT:
            if not isinstance(data[key], Mapping):
                raise ParseError('event field must be an object')
            body = EventResponse.from_dict(data[key])
        else:
            body = Error(data[key])

        try:
            return cls(data[fields.ID], data[fields.REQUEST], data[fields.SERVICE], body)
        except KeyError as exc:
            raise ParseError('response is missing required field ' + repr(exc.args[0])) from None


    @classmethod
    def from_bytes(cls, data):
        try:
            decoded = json.loads(data)
        except json.JSONDecodeError as exc:
            raise ParseError(f"response is not valid JSON: {exc}") from exc

        return cls.from_dict(decoded)


# end of class Response


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
