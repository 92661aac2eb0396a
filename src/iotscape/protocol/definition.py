""" Static description of an IoTScape service: the methods it can be asked
    to call, the events it may emit, and free-text metadata about the
    service itself. A :class:`ServiceDefinition` is built once by the host
    before any engine exists, and is never modified afterwards; the engine
    serializes it for :func:`announce` exactly once and reuses the bytes.

    The wire form is the ``{"<name>": {...}}`` announce payload; the
    ``to_dict()`` and ``from_dict()`` methods here translate between the
    Python-native attribute names and the camelCase names on the wire.
"""

from __future__ import annotations

import types
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from . import fields
from .errors import ParseError


def _frozen_mapping(mapping):
    return types.MappingProxyType(dict(mapping or {}))


def _put_optional(result, key, value):
    if value is not None:
        result[key] = value


@dataclass(frozen=True)
class MethodParam:
    """Describes one positional parameter of a method."""

    name: str
    type: str = "any"
    documentation: Optional[str] = None
    optional: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {fields.NAME: self.name}
        _put_optional(result, fields.DOCUMENTATION, self.documentation)
        result[fields.TYPE] = self.type
        result[fields.OPTIONAL] = self.optional
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MethodParam":
        return cls(
            name=data[fields.NAME],
            type=data.get(fields.TYPE, "any"),
            documentation=data.get(fields.DOCUMENTATION),
            optional=bool(data.get(fields.OPTIONAL, False)),
        )


@dataclass(frozen=True)
class MethodReturns:
    """Describes the values a method returns; *type* is a list of type
    names, one per returned value.
    """

    type: Tuple[str, ...] = ()
    documentation: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "type", tuple(self.type))

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        _put_optional(result, fields.DOCUMENTATION, self.documentation)
        result[fields.TYPE] = list(self.type)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MethodReturns":
        return cls(
            type=data.get(fields.TYPE, ()),
            documentation=data.get(fields.DOCUMENTATION),
        )


@dataclass(frozen=True)
class MethodDescription:
    """Describes a callable method of the service."""

    params: Tuple[MethodParam, ...] = ()
    returns: MethodReturns = field(default_factory=MethodReturns)
    documentation: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "params", tuple(self.params))

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        _put_optional(result, fields.DOCUMENTATION, self.documentation)
        result[fields.PARAMS] = [param.to_dict() for param in self.params]
        result[fields.RETURNS] = self.returns.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MethodDescription":
        params = [MethodParam.from_dict(param) for param in data.get(fields.PARAMS, ())]
        return cls(
            params=params,
            returns=MethodReturns.from_dict(data.get(fields.RETURNS, {})),
            documentation=data.get(fields.DOCUMENTATION),
        )


@dataclass(frozen=True)
class EventDescription:
    """Describes an event the service may emit; *params* are the names of
    the event arguments.
    """

    params: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "params", tuple(self.params))

    def to_dict(self) -> Dict[str, Any]:
        return {fields.PARAMS: list(self.params)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EventDescription":
        return cls(params=data.get(fields.PARAMS, ()))


# Python attribute name -> wire name for the service metadata block.

_description_names = (
    ("description", "description"),
    ("external_documentation", "externalDocumentation"),
    ("terms_of_service", "termsOfService"),
    ("contact", "contact"),
    ("license", "license"),
)


@dataclass(frozen=True)
class ServiceDescription:
    """Free-text metadata about the service; only *version* is required."""

    version: str
    description: Optional[str] = None
    external_documentation: Optional[str] = None
    terms_of_service: Optional[str] = None
    contact: Optional[str] = None
    license: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for attribute, wire in _description_names:
            _put_optional(result, wire, getattr(self, attribute))
        result["version"] = self.version
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ServiceDescription":
        kwargs = {attribute: data.get(wire) for attribute, wire in _description_names}
        return cls(version=data["version"], **kwargs)


@dataclass(frozen=True)
class ServiceDefinition:
    """ Everything announced to the server about one service instance.
        The *methods* and *events* mappings are copied into read-only views
        on construction; a definition cannot change once built.
    """

    id: str
    description: ServiceDescription
    methods: Mapping[str, MethodDescription] = field(default_factory=dict)
    events: Mapping[str, EventDescription] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "methods", _frozen_mapping(self.methods))
        object.__setattr__(self, "events", _frozen_mapping(self.events))

    def to_dict(self) -> Dict[str, Any]:
        return {
            fields.ID: self.id,
            fields.METHODS: {name: method.to_dict() for name, method in self.methods.items()},
            fields.EVENTS: {name: event.to_dict() for name, event in self.events.items()},
            fields.SERVICE: self.description.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ServiceDefinition":
        try:
            methods = {
                name: MethodDescription.from_dict(method)
                for name, method in data.get(fields.METHODS, {}).items()
            }
            events = {
                name: EventDescription.from_dict(event)
                for name, event in data.get(fields.EVENTS, {}).items()
            }
            return cls(
                id=data[fields.ID],
                description=ServiceDescription.from_dict(data[fields.SERVICE]),
                methods=methods,
                events=events,
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ParseError(f"malformed service definition: {exc!r}") from exc


def method(*params: MethodParam, returns: Sequence[str] = (), documentation=None, returns_documentation=None) -> MethodDescription:
    """ Shorthand for building a :class:`MethodDescription`::

            add = method(MethodParam('a', 'number'), MethodParam('b', 'number'),
                         returns=['number'], documentation='Adds two numbers')
    """

    returns = MethodReturns(type=tuple(returns), documentation=returns_documentation)
    return MethodDescription(params=params, returns=returns, documentation=documentation)
