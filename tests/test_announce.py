import asyncio
import gc
import logging
import threading
import time

import iotscape
from iotscape.transport import MockTransport, TransportSendError


class Announcing:
    """ Stands in for a service: counts announcements, optionally failing
        the first few.
    """

    name = 'Announcing'

    def __init__(self, failures=0):
        self.count = 0
        self.failures = failures
        self.announced = threading.Event()

    def announce(self):
        self.count += 1
        self.announced.set()

        if self.failures:
            self.failures -= 1
            raise TransportSendError('simulated failure')

        return 1


def test_period():

    service = Announcing()
    assert iotscape.announce.period(service) is None

    iotscape.announce.start(service, period=1)
    assert iotscape.announce.period(service) == 1

    # Starting again adjusts the existing thread instead of adding one.

    announcer = iotscape.announce.active[id(service)]
    iotscape.announce.start(service, period=2)
    assert iotscape.announce.period(service) == 2
    assert iotscape.announce.active[id(service)] is announcer

    iotscape.announce.stop(service)
    assert iotscape.announce.period(service) is None

    announcer.thread.join(1)
    assert announcer.thread.is_alive() == False


def test_basics():

    service = Announcing()

    iotscape.announce.start(service, 0.05)
    assert service.announced.wait(1) == True
    assert service.count >= 1

    iotscape.announce.stop(service)
    time.sleep(0.07)
    count = service.count
    time.sleep(0.12)

    assert service.count == count

    # A period of None or zero is the same as stop; redundant calls are fine.

    iotscape.announce.start(service, 0.05)
    iotscape.announce.start(service, period=None)
    assert iotscape.announce.period(service) is None

    iotscape.announce.start(service, period=0)
    iotscape.announce.stop(service)


def test_failures_logged(caplog):

    service = Announcing(failures=2)

    with caplog.at_level(logging.ERROR, logger='iotscape.announce'):
        iotscape.announce.start(service, 0.02)

        deadline = time.monotonic() + 2
        while service.count < 3 and time.monotonic() < deadline:
            time.sleep(0.01)

        iotscape.announce.stop(service)

    assert service.count >= 3
    assert 'periodic announce of Announcing failed' in caplog.text


def test_weak_reference():

    service = Announcing()
    iotscape.announce.start(service, 0.02)
    announcer = iotscape.announce.active[id(service)]

    del service
    gc.collect()

    announcer.thread.join(1)
    assert announcer.thread.is_alive() == False
    assert announcer not in iotscape.announce.active.values()


def test_real_service(definition):

    transport = MockTransport()
    service = iotscape.Service('ExampleService', definition, '127.0.0.1:1975', transport=transport)

    iotscape.announce.start(service, 0.02)

    deadline = time.monotonic() + 2
    while len(transport.sent) < 2 and time.monotonic() < deadline:
        time.sleep(0.01)

    iotscape.announce.stop(service)

    assert len(transport.sent) >= 2
    assert transport.sent[0][0] == service.announcement()
    assert service.next_msg_id == 0


async def test_periodic(definition):

    transport = iotscape.transport.AsyncMockTransport()
    service = await iotscape.AsyncService.create('ExampleService', definition, '127.0.0.1:1975', transport=transport)

    transport.fail_next()
    task = asyncio.create_task(iotscape.announce.periodic(service, 0.01))

    for attempt in range(200):
        if len(transport.sent) >= 2:
            break
        await asyncio.sleep(0.01)

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)

    assert task.cancelled()
    assert len(transport.sent) >= 2
    assert all(data == service.announcement() for data, _destination in transport.sent)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
