import pytest

import iotscape
from iotscape.protocol import factory
from iotscape.protocol.errors import ApplicationError, ParseError, SerializationError
from iotscape.protocol.message import Error, EventResponse, Request, Response, Result


def test_request_parse(wire_request):

    datagram = iotscape.json.dumps(wire_request('1'))
    request = Request.from_bytes(datagram)

    assert request.id == '1'
    assert request.service == 'ExampleService'
    assert request.device == 'd1'
    assert request.function == 'add'
    assert request.params == (2, 3)
    assert request.client_id is None


def test_request_client_id(wire_request):

    request = Request.from_dict(wire_request('7', clientId='client-9'))
    assert request.client_id == 'client-9'
    assert request.to_dict()['clientId'] == 'client-9'

    request = Request.from_dict(wire_request('8'))
    assert 'clientId' not in request.to_dict()


def test_request_loose_params(wire_request):

    params = [1, 'two', None, [3, 4], {'five': 5}, 6.5, True]
    request = Request.from_dict(wire_request('1', params=params))
    assert list(request.params) == params


@pytest.mark.parametrize('datagram', (
    b'',
    b'not json',
    b'{"id": "1", ',
    b'[1, 2, 3]',
    b'"heartbeat"',
    b'{"service": "s", "device": "d", "function": "f", "params": []}',
    b'{"id": 1, "service": "s", "device": "d", "function": "f", "params": []}',
    b'{"id": "1", "service": "s", "device": "d", "function": "f"}',
    b'{"id": "1", "service": "s", "device": "d", "function": "f", "params": 5}',
    b'{"id": "1", "service": "s", "device": "d", "function": "f", "params": [], "clientId": 3}',
))
def test_request_malformed(datagram):

    with pytest.raises(ParseError):
        Request.from_bytes(datagram)


def test_request_immutable(wire_request):

    request = Request.from_dict(wire_request('1'))

    with pytest.raises(AttributeError):
        request.function = 'heartbeat'


def test_response_result():

    response = Response('rs1', '1', 'ExampleService', Result([5]))
    assert response.to_dict() == {'id': 'rs1', 'request': '1', 'service': 'ExampleService', 'response': [5]}
    assert response.result == [5]
    assert response.event is None
    assert response.error is None


def test_response_empty_result():
    """ An empty result is a populated body, distinct from no body at all.
    """

    wire = Response('rs1', '1', 'ExampleService', Result()).to_dict()
    assert wire['response'] == []
    assert 'event' not in wire
    assert 'error' not in wire


def test_response_event():

    body = EventResponse('timer', {'elapsed': '5'})
    wire = Response('rs1', 'call', 'ExampleService', body).to_dict()

    assert wire['event'] == {'type': 'timer', 'args': {'elapsed': '5'}}
    assert 'response' not in wire
    assert 'error' not in wire

    wire = Response('rs1', 'call', 'ExampleService', EventResponse()).to_dict()
    assert wire['event'] == {}


def test_response_error():

    wire = Response('rs1', '1', 'ExampleService', Error('bad input')).to_dict()
    assert wire['error'] == 'bad input'
    assert 'response' not in wire
    assert 'event' not in wire


def test_response_body_required():

    with pytest.raises(TypeError):
        Response('rs1', '1', 'ExampleService', None)

    with pytest.raises(TypeError):
        Response('rs1', '1', 'ExampleService', [5])


@pytest.mark.parametrize('body', (Result([1, 'a']), EventResponse('x', {'k': 'v'}), Error('oops')))
def test_response_from_wire(body):

    response = Response('rs1', '4', 'ExampleService', body)
    rebuilt = Response.from_bytes(response.to_bytes())

    assert rebuilt == response
    assert rebuilt.body == body


def test_response_from_wire_exclusive():

    with pytest.raises(ParseError):
        Response.from_dict({'id': 'rs1', 'request': '1', 'service': 's'})

    with pytest.raises(ParseError):
        Response.from_dict({'id': 'rs1', 'request': '1', 'service': 's', 'response': [], 'error': 'x'})

    with pytest.raises(ParseError):
        Response.from_dict({'request': '1', 'service': 's', 'response': []})


def test_response_cached_encoding():

    response = Response('rs1', '1', 'ExampleService', Result([5]))
    first = response.to_bytes()
    assert first is response.to_bytes()


def test_serialization_error():

    response = Response('rs1', '1', 'ExampleService', Result([object()]))

    with pytest.raises(SerializationError):
        response.to_bytes()


def test_factory_response_to(wire_request):

    request = Request.from_dict(wire_request('1'))

    response = factory.response_to(request, 'rs1', [5])
    assert response.to_dict() == {'id': 'rs1', 'request': '1', 'service': 'ExampleService', 'response': [5]}

    response = factory.response_to(request, 'rs1')
    assert response.result == []

    response = factory.response_to(request, 'rs1', error=ApplicationError('division by zero'))
    assert response.error == 'division by zero'
    assert response.result is None

    with pytest.raises(ValueError):
        factory.response_to(request, 'rs1', [5], error='both')


@pytest.mark.parametrize('result', ('hello', b'hello', {'a': 1}))
def test_factory_response_to_not_a_sequence(wire_request, result):

    request = Request.from_dict(wire_request('1'))

    with pytest.raises(TypeError):
        factory.response_to(request, 'rs1', result)


def test_factory_event():

    response = factory.event('call-3', 'rs1', 'ExampleService', 'timer', {'a': 'b'})
    assert response.to_dict() == {
        'id': 'rs1',
        'request': 'call-3',
        'service': 'ExampleService',
        'event': {'type': 'timer', 'args': {'a': 'b'}},
    }

    response = factory.event('call-4', 'rs1', 'ExampleService', 'timer')
    assert response.to_dict()['event'] == {'type': 'timer'}

    # Event arguments are strings on the wire.

    response = factory.event('call-5', 'rs1', 'ExampleService', 'timer', {'n': 5, 7: True})
    assert response.to_dict()['event'] == {'type': 'timer', 'args': {'n': '5', '7': 'True'}}


def test_factory_heartbeat(wire_request):

    heartbeat = Request.from_dict(wire_request('h1', 'heartbeat', ()))
    add = Request.from_dict(wire_request('2'))

    assert factory.is_heartbeat(heartbeat)
    assert not factory.is_heartbeat(add)

    reply = factory.heartbeat_reply(heartbeat, 'rs1')
    assert reply.to_dict() == {'id': 'rs1', 'request': 'h1', 'service': 'ExampleService', 'response': []}


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
