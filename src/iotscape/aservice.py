""" The concurrent IoTScape engine, for hosts running an asyncio event loop.
    :class:`AsyncService` has the same operations and wire behavior as
    :class:`~iotscape.service.Service`, but may be used from many tasks (or
    threads) at once without any locking by the caller.

    Shared mutable state is limited to the inbound queue, the outbound
    queue, and the sequence counter; each has its own lock, and no lock is
    ever held across an ``await``. Everything else (the definition, the
    cached announce payload, the server address) is fixed once the engine
    exists. Every sender shares the one transport; a response is always a
    single datagram, so concurrent sends never interleave their bytes.

    Ordering between responses from different concurrent senders is not
    guaranteed; only that each send is atomic and that each successful send
    receives a distinct sequence number, with no gaps.
"""

import asyncio
import collections
import logging
import threading

from .config import Configuration, parse_address
from .protocol import factory
from .protocol.errors import ParseError
from .protocol.message import Request
from .transport.base import TransportError
from .transport.http import AsyncHTTPDelivery
from .transport.udp import AsyncUDPTransport

logger = logging.getLogger(__name__)


class AsyncService:
    """ Construct with :func:`AsyncService.create`, which binds the
        transport; the constructor itself expects an already-bound
        :class:`~iotscape.transport.AsyncTransport` instance.
    """

    def __init__(self, name, definition, server=None, transport=None, config=None, http=None):

        if config is None:
            config = Configuration()

        if server is None:
            server = config.server
        if server is None:
            raise ValueError('no server address supplied or configured')

        if transport is None or isinstance(transport, type):
            raise TypeError('AsyncService requires a bound transport; use AsyncService.create()')

        self.name = name
        self.definition = definition
        self.server = parse_address(server)
        self.config = config
        self.http = http
        self.transport = transport

        self._announcement = None
        self._announce_lock = threading.Lock()

        self._next_msg_id = 0
        self._id_lock = threading.Lock()

        self._rx_queue = collections.deque()
        self._rx_lock = threading.Lock()
        self._tx_queue = collections.deque()
        self._tx_lock = threading.Lock()


    @classmethod
    async def create(cls, name, definition, server=None, transport=None, config=None, http=None):
        """ Bind a transport and return a ready engine. The *transport* may
            be a bound instance or an AsyncTransport class; the default is
            :class:`~iotscape.transport.AsyncUDPTransport`.
        """

        if config is None:
            config = Configuration()

        if transport is None:
            transport = AsyncUDPTransport

        if isinstance(transport, type):
            transport = await transport.bind(config.bind_addresses)

        return cls(name, definition, server, transport, config, http)


    async def __aenter__(self):
        return self


    async def __aexit__(self, *exc_info):
        await self.aclose()


    @property
    def next_msg_id(self):
        with self._id_lock:
            return self._next_msg_id


    def _next_sequence(self):
        with self._id_lock:
            sequence = self._next_msg_id
            self._next_msg_id += 1

        return sequence


    def announcement(self):
        """ Return the announce payload, serializing it exactly once even if
            several tasks or threads ask for it at the same moment.
        """

        with self._announce_lock:
            if self._announcement is None:
                self._announcement = factory.announcement(self.name, self.definition)

            return self._announcement


    async def announce(self):
        """ Send the service definition to the server as a single datagram.
            Returns the number of bytes sent; raises
            :class:`~iotscape.transport.TransportError` on failure.
        """

        sent = await self.transport.send_to(self.announcement(), self.server)
        logger.info("announced %s to %s:%d", self.name, self.server[0], self.server[1])
        return sent


    async def poll(self):
        """ Receive every datagram currently available without waiting for
            more, answering heartbeats immediately and queueing other
            requests in arrival order; then send every queued response in
            order, and yield to the event loop.
        """

        await self._receive_all()
        await self._send_all()
        await asyncio.sleep(0)


    async def _receive_all(self):

        while True:
            try:
                data = await self.transport.receive()
            except TransportError as exc:
                logger.warning("receive failed, ending this poll: %s", exc)
                break

            if data is None:
                break

            try:
                request = Request.from_bytes(data)
            except ParseError as exc:
                logger.warning("dropping malformed datagram: %s", exc)
                continue

            if factory.is_heartbeat(request):
                logger.debug("answering heartbeat %s", request.id)
                await self._send_quietly(factory.heartbeat_reply(request, self.definition.id))
                continue

            with self._rx_lock:
                self._rx_queue.append(request)


    async def _send_all(self):

        while True:
            with self._tx_lock:
                if not self._tx_queue:
                    break
                response = self._tx_queue.popleft()

            await self._send_quietly(response)


    async def _send(self, response):

        await self.transport.send_to(response.to_bytes(), self.server)
        return self._next_sequence()


    async def _send_quietly(self, response):

        try:
            return await self._send(response)
        except TransportError as exc:
            logger.warning("could not send response to %s: %s", response.request, exc)


    def pop_request(self):
        """ Remove and return the oldest queued request, or None.
        """

        with self._rx_lock:
            try:
                return self._rx_queue.popleft()
            except IndexError:
                return None


    def drain_requests(self):
        """ Remove and return every queued request, oldest first.
        """

        with self._rx_lock:
            requests = list(self._rx_queue)
            self._rx_queue.clear()

        return requests


    async def enqueue_response_to(self, request, result=None, error=None, defer=False):
        """ Answer *request* with *result* values or an *error* message; see
            :func:`iotscape.service.Service.enqueue_response_to`. Returns the
            sequence number of the send, or None when *defer* queues the
            response for the next :func:`poll`.
        """

        response = factory.response_to(request, self.definition.id, result, error)

        if defer:
            # Encode now: a response that cannot be encoded fails here, not
            # in the middle of a later poll.
            response.to_bytes()
            with self._tx_lock:
                self._tx_queue.append(response)
            return None

        return await self._send(response)


    async def send_event(self, call_id, event_type, args=None):
        """ Emit an event correlated to *call_id*; returns its sequence
            number.
        """

        response = factory.event(call_id, self.definition.id, self.name, event_type, args)
        return await self._send(response)


    def _delivery(self):

        if self.http is None:
            config = self.config
            self.http = AsyncHTTPDelivery(config.announce_url, config.response_url, config.http_timeout)

        return self.http


    async def announce_http(self):
        """ Post the announce payload to the configured announce endpoint.
        """

        return await self._delivery().announce(self.announcement())


    async def enqueue_response_to_http(self, request, result=None, error=None):
        """ The same as :func:`enqueue_response_to`, but POST the response
            to the configured response endpoint instead.
        """

        response = factory.response_to(request, self.definition.id, result, error)
        await self._delivery().send_response(response)
        return self._next_sequence()


    async def aclose(self):
        """ Release the transport and any HTTP client.
        """

        self.transport.close()

        if self.http is not None:
            await self.http.aclose()


# end of class AsyncService


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
