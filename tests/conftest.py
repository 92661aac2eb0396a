import pytest

import iotscape
from iotscape import MethodParam, ServiceDefinition, ServiceDescription
from iotscape.protocol.definition import EventDescription, method
from iotscape.transport import MockTransport


server = ('127.0.0.1', 1975)


@pytest.fixture
def definition():

    methods = dict()
    methods['helloWorld'] = method(
        returns=['string'],
        documentation='Says "Hello, World!"',
        returns_documentation='The text "Hello, World!"')

    methods['add'] = method(
        MethodParam('a', 'number', 'First number'),
        MethodParam('b', 'number', 'Second number'),
        returns=['number'],
        documentation='Adds two numbers',
        returns_documentation='The sum of a and b')

    methods['timer'] = method(
        MethodParam('msec', 'number', 'Amount of time to wait, in ms'),
        returns=['event timer'],
        documentation='Sends timer event on a delay')

    events = dict()
    events['timer'] = EventDescription()

    description = ServiceDescription(
        version='1',
        description='Test IoTScape service.',
        contact='gstein@ltu.edu')

    return ServiceDefinition('rs1', description, methods, events)


@pytest.fixture
def transport():
    return MockTransport()


@pytest.fixture
def service(definition, transport):
    service = iotscape.Service('ExampleService', definition, server, transport=transport)
    yield service
    service.close()


@pytest.fixture
def wire_request():
    """ Return a function building the wire form of a request, ready to
        feed to a mock transport.
    """

    return make_request


def make_request(id, function='add', params=(2, 3), **extra):

    request = dict()
    request['id'] = id
    request['service'] = 'ExampleService'
    request['device'] = 'd1'
    request['function'] = function
    request['params'] = list(params)
    request.update(extra)
    return request


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
