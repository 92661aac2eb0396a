""" Runtime configuration for an IoTScape service. A :class:`Configuration`
    instance is handed to the engine at construction time; nothing in this
    package reads configuration from global state on its own.

    The two loaders, :func:`Configuration.from_environment` and
    :func:`Configuration.from_file`, exist for the convenience of hosts.
"""

import os

from . import json


default_bind = (('0.0.0.0', 0),)
default_poll_timeout = 0.015
default_http_timeout = 5.0

environment = dict(
    server='IOTSCAPE_SERVER',
    announce_url='IOTSCAPE_ANNOUNCE_ENDPOINT',
    response_url='IOTSCAPE_RESPONSE_ENDPOINT',
    bind_addresses='IOTSCAPE_BIND',
    poll_timeout='IOTSCAPE_POLL_TIMEOUT',
    http_timeout='IOTSCAPE_HTTP_TIMEOUT',
)


def parse_address(address):
    """ Interpret *address* as a (host, port) tuple. Accepts a 'host:port'
        string, including bracketed IPv6 hosts like '[::1]:1975', or any
        two-element sequence. Raises ValueError for anything else.
    """

    if isinstance(address, str):
        host, separator, port = address.strip().rpartition(':')

        if separator == '' or host == '':
            raise ValueError('address must be host:port, not ' + repr(address))

        if host.startswith('[') and host.endswith(']'):
            host = host[1:-1]
    else:
        try:
            host, port = address
        except (TypeError, ValueError):
            raise ValueError('address must be host:port, not ' + repr(address)) from None

    try:
        port = int(port)
    except (TypeError, ValueError):
        raise ValueError('invalid port in address ' + repr(address)) from None

    if port < 0 or port > 65535:
        raise ValueError('port out of range in address ' + repr(address))

    return (str(host), port)


class Configuration:
    """ Settings shared by the engines and the HTTP delivery path.

        :ivar server: (host, port) of the IoTScape server, or None.
        :ivar announce_url: HTTP endpoint for announcements, or None.
        :ivar response_url: HTTP endpoint for responses, or None.
        :ivar bind_addresses: Candidate local addresses, tried in order.
        :ivar poll_timeout: Default read timeout for a poll, in seconds.
        :ivar http_timeout: Timeout for HTTP delivery, in seconds.
    """

    def __init__(self, server=None, announce_url=None, response_url=None,
                 bind_addresses=default_bind, poll_timeout=default_poll_timeout,
                 http_timeout=default_http_timeout):

        if server is not None:
            server = parse_address(server)

        bind_addresses = tuple(parse_address(address) for address in bind_addresses)
        if len(bind_addresses) == 0:
            raise ValueError('at least one bind address is required')

        self.server = server
        self.announce_url = announce_url or None
        self.response_url = response_url or None
        self.bind_addresses = bind_addresses
        self.poll_timeout = float(poll_timeout)
        self.http_timeout = float(http_timeout)


    def __repr__(self):
        values = ', '.join('%s=%r' % (key, getattr(self, key)) for key in environment)
        return 'Configuration(' + values + ')'


    @classmethod
    def from_environment(cls, environ=None):
        """ Build a configuration from IOTSCAPE_* environment variables;
            unset variables keep their defaults. IOTSCAPE_BIND may list
            several comma-separated addresses.
        """

        if environ is None:
            environ = os.environ

        kwargs = dict()

        for key, variable in environment.items():
            try:
                value = environ[variable]
            except KeyError:
                continue

            value = value.strip()
            if value == '':
                continue

            if key == 'bind_addresses':
                value = [part for part in value.split(',') if part.strip()]

            kwargs[key] = value

        return cls(**kwargs)


    @classmethod
    def from_file(cls, path):
        """ Build a configuration from a JSON file containing an object
            whose keys are the attribute names of this class.
        """

        with open(path, 'rb') as contents:
            loaded = json.loads(contents.read())

        if not isinstance(loaded, dict):
            raise ValueError('configuration file must contain a JSON object: ' + str(path))

        unknown = set(loaded) - set(environment)
        if unknown:
            raise ValueError('unknown configuration keys: ' + ', '.join(sorted(unknown)))

        return cls(**loaded)


# end of class Configuration


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
