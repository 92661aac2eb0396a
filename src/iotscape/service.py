""" The single-threaded IoTScape engine. A :class:`Service` owns one
    transport, announces its :class:`~iotscape.protocol.ServiceDefinition`
    to the server, and exchanges requests and responses whenever the host
    calls :func:`Service.poll`. There are no background threads; all
    activity happens inside the calls the host makes.

    A typical host loop::

        service = iotscape.Service('ExampleService', definition, '127.0.0.1:1975')
        service.announce()

        while True:
            service.poll()
            for request in service.drain_requests():
                service.enqueue_response_to(request, handle(request))
"""

import collections
import logging

from .config import Configuration, parse_address
from .protocol import factory
from .protocol.errors import ParseError
from .protocol.message import Request
from .transport.base import TransportError
from .transport.http import HTTPDelivery
from .transport.udp import UDPTransport

logger = logging.getLogger(__name__)


class Service:
    """ Announce a service definition and exchange messages with the server
        at *server*, a (host, port) tuple or 'host:port' string; if *server*
        is None the address is taken from *config*.

        The *transport* may be an already-bound
        :class:`~iotscape.transport.Transport` instance, or a Transport
        class to bind against the configured local addresses; the default
        is a live :class:`~iotscape.transport.UDPTransport`. Failure to bind
        raises :class:`~iotscape.transport.TransportBindError`.

        The *http* argument optionally supplies the
        :class:`~iotscape.transport.HTTPDelivery` used by the ``*_http``
        methods; otherwise one is built from *config* on first use.
    """

    def __init__(self, name, definition, server=None, transport=None, config=None, http=None):

        if config is None:
            config = Configuration()

        if server is None:
            server = config.server
        if server is None:
            raise ValueError('no server address supplied or configured')

        self.name = name
        self.definition = definition
        self.server = parse_address(server)
        self.config = config
        self.http = http

        if transport is None:
            transport = UDPTransport

        if isinstance(transport, type):
            transport = transport.bind(config.bind_addresses)

        self.transport = transport

        self._announcement = None
        self._next_msg_id = 0
        self._rx_queue = collections.deque()
        self._tx_queue = collections.deque()


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.close()


    @property
    def next_msg_id(self):
        """ The sequence number the next successful send will be assigned.
        """

        return self._next_msg_id


    def announcement(self):
        """ Return the announce payload, serializing it on first use. The
            definition cannot change, so the cached bytes never go stale.
        """

        if self._announcement is None:
            self._announcement = factory.announcement(self.name, self.definition)

        return self._announcement


    def announce(self):
        """ Send the service definition to the server as a single datagram.
            Safe to call repeatedly; hosts that want periodic re-announcement
            call this on their own schedule. Returns the number of bytes
            sent; raises :class:`~iotscape.transport.TransportError` on
            failure.
        """

        sent = self.transport.send_to(self.announcement(), self.server)
        logger.info("announced %s to %s:%d", self.name, self.server[0], self.server[1])
        return sent


    def poll(self, timeout=None):
        """ Handle traffic: receive every datagram currently available,
            answering heartbeats on the spot and queueing all other requests
            in arrival order, then send every queued response in order.

            The *timeout* (seconds, default from the configuration) bounds
            how long any single receive or send may wait.
        """

        if timeout is None:
            timeout = self.config.poll_timeout

        self.transport.set_read_timeout(timeout)
        self.transport.set_write_timeout(timeout)

        self._receive_all()
        self._send_all()


    def _receive_all(self):

        while True:
            try:
                data = self.transport.receive()
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
                self._send_quietly(factory.heartbeat_reply(request, self.definition.id))
                continue

            self._rx_queue.append(request)


    def _send_all(self):

        while self._tx_queue:
            response = self._tx_queue.popleft()
            self._send_quietly(response)


    def _send(self, response):
        """ Put one response on the wire and assign it the next sequence
            number; the number only advances when the send succeeded.
        """

        self.transport.send_to(response.to_bytes(), self.server)

        sequence = self._next_msg_id
        self._next_msg_id += 1
        return sequence


    def _send_quietly(self, response):

        try:
            return self._send(response)
        except TransportError as exc:
            logger.warning("could not send response to %s: %s", response.request, exc)


    def pop_request(self):
        """ Remove and return the oldest queued request, or None if the
            inbound queue is empty.
        """

        try:
            return self._rx_queue.popleft()
        except IndexError:
            return None


    def drain_requests(self):
        """ Remove and return every queued request, oldest first.
        """

        requests = list(self._rx_queue)
        self._rx_queue.clear()
        return requests


    def enqueue_response_to(self, request, result=None, error=None, defer=False):
        """ Answer *request*. If *error* is given (a string or an exception,
            such as :class:`~iotscape.protocol.ApplicationError`) the
            response carries that message; otherwise it carries the
            *result* values, an empty list if omitted. Supplying both is a
            ValueError; a *result* that is a lone string, bytes or mapping
            instead of a sequence of values is a TypeError.

            The response is sent immediately and its sequence number is
            returned; a transport failure is raised to the caller and not
            retried. With *defer* set the response is queued instead, sent
            by the next :func:`poll`, and None is returned. Either way a
            response that cannot be encoded raises
            :class:`~iotscape.protocol.SerializationError` right here.
        """

        response = factory.response_to(request, self.definition.id, result, error)

        if defer:
            # Encode now: a response that cannot be encoded fails here, not
            # in the middle of a later poll.
            response.to_bytes()
            self._tx_queue.append(response)
            return None

        return self._send(response)


    def send_event(self, call_id, event_type, args=None):
        """ Emit an event of *event_type* with string-valued *args*. The
            *call_id* is echoed in the response's ``request`` field; it is
            typically the id of the request that scheduled the event, but
            any token the application chooses is acceptable.
        """

        response = factory.event(call_id, self.definition.id, self.name, event_type, args)
        return self._send(response)


    def _delivery(self):

        if self.http is None:
            config = self.config
            self.http = HTTPDelivery(config.announce_url, config.response_url, config.http_timeout)

        return self.http


    def announce_http(self):
        """ The same as :func:`announce`, but POST the payload to the
            configured announce endpoint instead.
        """

        return self._delivery().announce(self.announcement())


    def enqueue_response_to_http(self, request, result=None, error=None):
        """ The same as :func:`enqueue_response_to`, but POST the response
            to the configured response endpoint instead.
        """

        response = factory.response_to(request, self.definition.id, result, error)
        self._delivery().send_response(response)

        sequence = self._next_msg_id
        self._next_msg_id += 1
        return sequence


    def close(self):
        """ Release the transport and any HTTP client. Datagrams already
            handed to the transport are not recalled.
        """

        self.transport.close()

        if self.http is not None:
            self.http.close()


# end of class Service


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
