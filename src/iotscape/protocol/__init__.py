from . import fields
from . import errors
from . import definition
from . import message
from . import factory

from .errors import ApplicationError, ParseError, ProtocolError, SerializationError
from .definition import (
    EventDescription,
    MethodDescription,
    MethodParam,
    MethodReturns,
    ServiceDefinition,
    ServiceDescription,
)
from .message import Error, EventResponse, Request, Response, Result


"""
IoTScape Protocol Layer
=======================

This package defines the messages exchanged between an IoTScape service
and its directory server, independent of how the bytes travel.

The protocol layer MUST NOT depend on any transport implementation
(UDP sockets, HTTP clients, etc).

---------------------------------------------------------------------

Layer Architecture Overview
---------------------------

Engine (service.py / aservice.py)
    announce(), poll(), enqueue_response_to(), send_event()
    Owns queues and the sequence counter

    │
    ▼
Message Factory (factory.py)
    - announcement payload
    - response_to / event
    - heartbeat detection and reply

    │
    ▼
Message Model (message.py, definition.py)
    Request, Response and its single body
    ServiceDefinition and nested metadata

    │
    ▼
Field Vocabulary (fields.py)
    Canonical wire names and the reserved
    ``heartbeat`` function name

---------------------------------------------------------------------

Below the Protocol Layer
------------------------

Transport Layer (iotscape.transport)
    Moves one JSON document per datagram
    - UDP
    - in-memory mock
    - discard
    - HTTP delivery for announce/response

---------------------------------------------------------------------
"""


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
