""" An example IoTScape service, answering requests from a single-threaded
    host loop. Run it against a server with::

        python example_service.py --server 127.0.0.1:1975

    The server address may also come from the IOTSCAPE_SERVER environment
    variable.
"""

import argparse
import logging
import queue
import threading
import time

import iotscape
from iotscape import MethodParam, ServiceDefinition, ServiceDescription
from iotscape.protocol.definition import EventDescription, method


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
        documentation='Sends timer event on a delay',
        returns_documentation='Response after delay')

    methods['returnComplex'] = method(
        returns=['string', 'string'],
        documentation='Complex response to method',
        returns_documentation='Complex object')

    events = dict()
    events['timer'] = EventDescription()

    description = ServiceDescription(
        version='1',
        description='Test IoTScape service.',
        contact='gstein@ltu.edu')

    return ServiceDefinition('rs1', description, methods, events)


def number(value):
    """ Interpret one parameter as a number. Integers, and strings holding
        integers, stay integral so that add(2, 3) answers 5 rather than 5.0.
    """

    if isinstance(value, bool):
        raise TypeError('not a number: ' + repr(value))

    if isinstance(value, int):
        return value

    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass

    return float(value)


def handle(service, request):
    """ Answer one request. Returns a (event, due, call_id) tuple when the
        request schedules a delayed event, otherwise None.
    """

    function = request.function

    if function == 'helloWorld':
        service.enqueue_response_to(request, ['Hello, World!'])

    elif function == 'add':
        try:
            total = sum(number(param) for param in request.params)
        except (TypeError, ValueError):
            service.enqueue_response_to(request, error=iotscape.ApplicationError('add expects numbers'))
        else:
            service.enqueue_response_to(request, [total])

    elif function == 'timer':
        try:
            delay = float(request.params[0]) / 1000
        except (IndexError, TypeError, ValueError):
            delay = 0

        # The event is sent from the host loop once the delay elapses; the
        # engine is single-threaded and must not be used from a timer thread.
        service.enqueue_response_to(request, [])
        return ('timer', time.time() + delay, request.id)

    elif function == 'returnComplex':
        service.enqueue_response_to(request, [['test', [1, 2, 3]]])

    elif function == '_requestedKey':
        logging.info("received key: %r", request.params)
        service.enqueue_response_to(request, [])

    else:
        logging.warning("unrecognized function %s", function)
        service.enqueue_response_to(request, error='unrecognized function ' + function)

    return None


def console(commands):
    """ Read commands from standard input and hand them to the host loop.
    """

    while True:
        try:
            line = input()
        except EOFError:
            commands.put('quit')
            return

        commands.put(line.strip())


def main():

    parser = argparse.ArgumentParser(description=__doc__.split('\n')[0].strip())
    parser.add_argument('--server', help='IoTScape server as host:port')
    parser.add_argument('--name', default='ExampleService')
    parser.add_argument('--period', type=float, default=60, help='re-announce period, seconds')
    arguments = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s %(message)s')

    config = iotscape.Configuration.from_environment()
    service = iotscape.Service(arguments.name, definition(), arguments.server, config=config)
    service.announce()

    last_announce = time.time()
    timers = list()
    commands = queue.SimpleQueue()

    reader = threading.Thread(target=console, args=(commands,), daemon=True)
    reader.start()

    while True:
        service.poll(0.001)

        now = time.time()
        if now - last_announce > arguments.period:
            service.announce()
            last_announce = now

        for request in service.drain_requests():
            logging.info("handling %s(%r)", request.function, list(request.params))
            timer = handle(service, request)
            if timer is not None:
                timers.append(timer)

        for timer in list(timers):
            event, due, call_id = timer
            if due <= now:
                timers.remove(timer)
                service.send_event(call_id, event)

        while not commands.empty():
            command = commands.get()

            if command == 'announce':
                service.announce()
            elif command == 'getkey':
                service.send_event(str(service.next_msg_id), '_requestKey')
            elif command == 'reset':
                service.send_event(str(service.next_msg_id), '_reset')
            elif command == 'quit':
                service.close()
                return
            elif command == 'help':
                print('Commands:')
                print('  announce - send a new announce to the server')
                print('  getkey - request a key from the server')
                print('  reset - reset the encryption settings on the server')
                print('  quit - exit the program')
            elif command:
                print('Unrecognized command ' + command)


if __name__ == '__main__':
    main()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
