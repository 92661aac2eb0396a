''' Wrapper module around :mod:`orjson` providing the equivalent of
    :func:`json.loads` and :func:`json.dumps`. Every IoTScape datagram is a
    single UTF-8 JSON document; :func:`dumps` always returns bytes so that
    the result can be handed directly to a transport.
'''

import orjson

JSONDecodeError = orjson.JSONDecodeError
JSONEncodeError = orjson.JSONEncodeError


def dumps(value):
    """ Return the compact JSON encoding of *value* as bytes.
    """

    return orjson.dumps(value)


def loads(data):
    """ Decode *data*, which may be bytes, bytearray, memoryview or str.
    """

    return orjson.loads(data)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
