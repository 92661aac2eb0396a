import asyncio
import decimal
import logging
import threading

import pytest

import iotscape
from iotscape.transport import AsyncMockTransport, AsyncNullTransport, TransportSendError


server = ('127.0.0.1', 1975)


@pytest.fixture
def atransport():
    return AsyncMockTransport()


@pytest.fixture
async def aservice(definition, atransport):
    service = await iotscape.AsyncService.create('ExampleService', definition, server, transport=atransport)
    yield service
    await service.aclose()


async def test_announce(aservice, atransport):

    sent = await aservice.announce()
    await aservice.announce()

    assert len(atransport.sent) == 2
    assert atransport.sent[0] == atransport.sent[1]
    assert sent == len(atransport.sent[0][0])

    announced = atransport.sent_messages()[0]['ExampleService']
    assert announced['id'] == 'rs1'
    assert set(announced['methods']) == set(('helloWorld', 'add', 'timer'))


async def test_add_scenario(aservice, atransport, wire_request):

    atransport.feed(wire_request('1', 'add', (2, 3)))
    await aservice.poll()

    request = aservice.pop_request()
    assert request.params == (2, 3)

    sequence = await aservice.enqueue_response_to(request, [sum(request.params)])
    assert sequence == 0

    assert atransport.sent_messages() == [
        {'id': 'rs1', 'request': '1', 'service': 'ExampleService', 'response': [5]},
    ]


async def test_poll_order_and_heartbeats(aservice, atransport, wire_request):

    atransport.feed(
        wire_request('1'),
        wire_request('h1', 'heartbeat', ()),
        b'garbage',
        wire_request('2'),
        wire_request('h2', 'heartbeat', ()),
        wire_request('3'),
    )

    await aservice.poll()

    assert [request.id for request in aservice.drain_requests()] == ['1', '2', '3']
    assert [reply['request'] for reply in atransport.sent_messages()] == ['h1', 'h2']
    assert all(reply['response'] == [] for reply in atransport.sent_messages())


async def test_poll_without_data(aservice, atransport):

    await aservice.poll()
    assert aservice.pop_request() is None
    assert atransport.sent == []


async def test_error_and_event(aservice, atransport, wire_request):

    atransport.feed(wire_request('1'))
    await aservice.poll()

    await aservice.enqueue_response_to(aservice.pop_request(), error='bad parameters')
    await aservice.send_event('1', 'timer')

    failed, event = atransport.sent_messages()
    assert failed == {'id': 'rs1', 'request': '1', 'service': 'ExampleService', 'error': 'bad parameters'}
    assert event == {'id': 'rs1', 'request': '1', 'service': 'ExampleService', 'event': {'type': 'timer'}}


async def test_deferred(aservice, atransport, wire_request, caplog):

    atransport.feed(wire_request('1'), wire_request('2'))
    await aservice.poll()

    for request in aservice.drain_requests():
        assert await aservice.enqueue_response_to(request, [5], defer=True) is None

    atransport.fail_next()

    with caplog.at_level(logging.WARNING, logger='iotscape.aservice'):
        await aservice.poll()

    assert [message['request'] for message in atransport.sent_messages()] == ['2']
    assert 'could not send response to 1' in caplog.text


async def test_deferred_unencodable(aservice, atransport, wire_request):

    atransport.feed(wire_request('1'), wire_request('2'), wire_request('3'))
    await aservice.poll()

    first, second, third = aservice.drain_requests()
    await aservice.enqueue_response_to(first, [1], defer=True)

    with pytest.raises(iotscape.protocol.SerializationError):
        await aservice.enqueue_response_to(second, [decimal.Decimal('2.5')], defer=True)

    await aservice.enqueue_response_to(third, [3], defer=True)
    await aservice.poll()

    assert [message['request'] for message in atransport.sent_messages()] == ['1', '3']
    assert aservice.next_msg_id == 2


async def test_send_failure_raises(aservice, atransport):

    atransport.fail_next()

    with pytest.raises(TransportSendError):
        await aservice.send_event('x', 'timer')

    assert aservice.next_msg_id == 0


async def test_concurrent_sequence(aservice, atransport):
    """ Many tasks sending at once receive exactly the sequence numbers
        0 through M-1, with no repeats and no gaps.
    """

    async def sender(number):
        sequences = list()
        for count in range(25):
            sequences.append(await aservice.send_event('%d.%d' % (number, count), 'timer'))
        return sequences

    results = await asyncio.gather(*(sender(number) for number in range(8)))
    sequences = [sequence for result in results for sequence in result]

    assert sorted(sequences) == list(range(200))
    assert aservice.next_msg_id == 200
    assert len(atransport.sent) == 200

    # Every datagram is intact.

    tokens = set(message['request'] for message in atransport.sent_messages())
    assert len(tokens) == 200


async def test_concurrent_sequence_with_failures(aservice, atransport):

    atransport.fail_next(7)

    results = await asyncio.gather(
        *(aservice.send_event(str(number), 'timer') for number in range(50)),
        return_exceptions=True)

    failures = [result for result in results if isinstance(result, TransportSendError)]
    sequences = [result for result in results if isinstance(result, int)]

    assert len(failures) == 7
    assert sorted(sequences) == list(range(43))
    assert aservice.next_msg_id == 43


def test_threads_share_service(definition):
    """ Independent threads, each with its own event loop, may use one
        engine without any locking of their own.
    """

    transport = AsyncMockTransport()
    service = iotscape.AsyncService('ExampleService', definition, server, transport)

    sequences = list()
    sequences_lock = threading.Lock()

    async def sender(number):
        mine = list()
        for count in range(50):
            mine.append(await service.send_event('%d.%d' % (number, count), 'timer'))
        return mine

    def worker(number):
        mine = asyncio.run(sender(number))
        with sequences_lock:
            sequences.extend(mine)

    threads = [threading.Thread(target=worker, args=(number,)) for number in range(6)]

    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(sequences) == list(range(300))
    assert len(transport.sent) == 300


async def test_concurrent_queue_access(aservice, atransport, wire_request):

    atransport.feed(*(wire_request(str(number)) for number in range(100)))
    await aservice.poll()

    async def consumer():
        taken = list()
        while True:
            request = aservice.pop_request()
            if request is None:
                return taken
            taken.append(request.id)
            await asyncio.sleep(0)

    results = await asyncio.gather(*(consumer() for number in range(5)))
    taken = [id for result in results for id in result]

    assert sorted(taken, key=int) == [str(number) for number in range(100)]


async def test_announce_serialized_once(definition, monkeypatch):

    calls = list()
    original = iotscape.protocol.factory.announcement

    def counting(name, definition):
        calls.append(name)
        return original(name, definition)

    monkeypatch.setattr(iotscape.protocol.factory, 'announcement', counting)

    service = await iotscape.AsyncService.create('ExampleService', definition, server, transport=AsyncNullTransport)
    await asyncio.gather(*(service.announce() for number in range(10)))

    assert calls == ['ExampleService']


async def test_requires_bound_transport(definition):

    with pytest.raises(TypeError):
        iotscape.AsyncService('ExampleService', definition, server, AsyncMockTransport)

    service = await iotscape.AsyncService.create('ExampleService', definition, server, transport=AsyncMockTransport)
    assert isinstance(service.transport, AsyncMockTransport)


async def test_context_manager(definition, atransport):

    async with await iotscape.AsyncService.create('ExampleService', definition, server, transport=atransport) as service:
        await service.announce()

    assert atransport.closed


@pytest.mark.parametrize('name', (
    'announce', 'poll', 'pop_request', 'drain_requests', 'enqueue_response_to',
    'send_event', 'announce_http', 'enqueue_response_to_http', 'aclose',
))
def test_documented(name):

    assert getattr(iotscape.AsyncService, name).__doc__


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
