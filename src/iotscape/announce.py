""" Periodic re-announcement, for hosts that want it. The engines never
    re-announce on their own; a host that wants the server to keep hearing
    from it either calls ``announce()`` on its own schedule, or uses one of
    the helpers here:

    * :func:`start` re-announces a :class:`~iotscape.service.Service` from a
      background thread every *period* seconds;
    * :func:`periodic` is a coroutine doing the same for an
      :class:`~iotscape.aservice.AsyncService`; wrap it in a task.

    Failures are logged and the schedule continues; there is no retry
    beyond the next scheduled announcement.
"""

import asyncio
import logging
import threading
import weakref

from .transport.base import TransportError

logger = logging.getLogger(__name__)

active = dict()
active_lock = threading.Lock()


def period(service):
    """ Return the re-announce period currently active for *service*, or
        None if there is no background re-announcement for it.
    """

    with active_lock:
        announcer = active.get(id(service))

    if announcer is None:
        return None

    return announcer.interval



def start(service, period):
    """ Call ``service.announce()`` every *period* seconds from a background
        thread, starting one period from now. Only a weak reference to the
        service is held: once the host drops the service, the thread exits.

        Calling :func:`start` again for the same service changes the period
        of the existing thread rather than starting a second one. A *period*
        of None or zero is the same as calling :func:`stop`.
    """

    if period is None or period == 0:
        stop(service)
        return

    with active_lock:
        announcer = active.get(id(service))

        if announcer is None:
            announcer = _Announcer(service, period)
            active[announcer.service_id] = announcer
            announcer.thread.start()
        else:
            announcer.period(period)



def stop(service):
    """ Discontinue re-announcing *service*.
    """

    with active_lock:
        announcer = active.pop(id(service), None)

    if announcer is not None:
        announcer.stop()



class _Announcer:
    """ Background thread to invoke the periodic announcements.
    """

    def __init__(self, service, period):

        self.service_id = id(service)
        self.reference = weakref.ref(service)
        self.interval = float(period)
        self.shutdown = False

        self.alarm = threading.Event()
        self.thread = threading.Thread(target=self.run)
        self.thread.daemon = True


    def period(self, period):
        self.interval = float(period)
        self.alarm.set()


    def run(self):

        while True:
            woken = self.alarm.wait(self.interval)

            if self.shutdown == True:
                break

            if woken:
                # The period changed; start a fresh cadence from now.
                self.alarm.clear()
                continue

            service = self.reference()

            if service is None:
                # The service is gone. No further announcements are possible.
                break

            try:
                service.announce()
            except TransportError as exc:
                logger.error("periodic announce of %s failed: %s", service.name, exc)

            del service

        with active_lock:
            if active.get(self.service_id) is self:
                del active[self.service_id]


    def stop(self):
        self.shutdown = True
        self.alarm.set()


async def periodic(service, period):
    """ Re-announce an :class:`~iotscape.aservice.AsyncService` every
        *period* seconds until cancelled::

            task = asyncio.create_task(iotscape.announce.periodic(service, 30))
    """

    while True:
        await asyncio.sleep(period)

        try:
            await service.announce()
        except TransportError as exc:
            logger.error("periodic announce of %s failed: %s", service.name, exc)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
