""" Python implementation of an IoTScape service. A service describes the
    methods it offers and the events it emits, announces that description to
    an IoTScape server, and then answers the server's requests over UDP.
"""

# Utility components.

from . import json

# Submodules used by multiple other components.

from . import protocol
from . import transport
from . import config
from .config import Configuration

# Primary public-facing interfaces.

from .protocol import (
    ApplicationError,
    EventDescription,
    MethodDescription,
    MethodParam,
    MethodReturns,
    Request,
    Response,
    ServiceDefinition,
    ServiceDescription,
)
from .service import Service
from .aservice import AsyncService
from . import announce

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
