""" An example IoTScape service on an asyncio event loop. Each request is
    handled in its own task; delayed events are sent from their own tasks
    too, concurrently with the polling loop. Run it with::

        python example_service_async.py --server 127.0.0.1:1978
"""

import argparse
import asyncio
import logging
import sys

import iotscape
import iotscape.announce

from example_service import definition, number


async def delayed_event(service, delay, call_id, event_type, args=None):
    await asyncio.sleep(delay)
    logging.info("sending event %s with args %r after %.3f sec", event_type, args, delay)
    await service.send_event(call_id, event_type, args)


async def handle(service, request, tasks):

    function = request.function

    if function == 'helloWorld':
        await service.enqueue_response_to(request, ['Hello, World!'])

    elif function == 'add':
        try:
            total = sum(number(param) for param in request.params)
        except (TypeError, ValueError):
            await service.enqueue_response_to(request, error='add expects numbers')
        else:
            await service.enqueue_response_to(request, [total])

    elif function == 'timer':
        try:
            delay = float(request.params[0]) / 1000
        except (IndexError, TypeError, ValueError):
            delay = 0

        spawn(tasks, delayed_event(service, delay, request.id, 'timer'))
        await service.enqueue_response_to(request, [])

    elif function == 'returnComplex':
        await service.enqueue_response_to(request, [['test', [1, 2, 3]]])

    elif function == '_requestedKey':
        logging.info("received key: %r", request.params)
        await service.enqueue_response_to(request, [])

    else:
        logging.warning("unrecognized function %s", function)
        await service.enqueue_response_to(request, error='unrecognized function ' + function)


def spawn(tasks, coroutine):
    """ Start *coroutine* as a task, keeping a reference until it finishes.
    """

    task = asyncio.create_task(coroutine)
    tasks.add(task)
    task.add_done_callback(tasks.discard)
    return task


async def serve(service, tasks):

    while True:
        await service.poll()

        for request in service.drain_requests():
            logging.info("handling %s(%r)", request.function, list(request.params))
            spawn(tasks, handle(service, request, tasks))

        await asyncio.sleep(0.01)


async def console(service):

    loop = asyncio.get_running_loop()

    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)

        if line == '':
            return

        command = line.strip()

        if command == 'announce':
            await service.announce()
        elif command == 'getkey':
            await service.send_event(str(service.next_msg_id), '_requestKey')
        elif command == 'reset':
            await service.send_event(str(service.next_msg_id), '_reset')
        elif command == 'quit':
            return
        elif command == 'help':
            print('Commands:')
            print('  announce - send a new announce to the server')
            print('  getkey - request a key from the server')
            print('  reset - reset the encryption settings on the server')
            print('  quit - exit the program')
        elif command:
            print('Unrecognized command ' + command)


async def main(arguments):

    config = iotscape.Configuration.from_environment()
    service = await iotscape.AsyncService.create(arguments.name, definition(), arguments.server, config=config)

    async with service:
        await service.announce()

        tasks = set()
        spawn(tasks, iotscape.announce.periodic(service, arguments.period))
        spawn(tasks, serve(service, tasks))

        await console(service)

        pending = list(tasks)
        for task in pending:
            task.cancel()

        await asyncio.gather(*pending, return_exceptions=True)


if __name__ == '__main__':

    parser = argparse.ArgumentParser(description=__doc__.split('\n')[0].strip())
    parser.add_argument('--server', help='IoTScape server as host:port')
    parser.add_argument('--name', default='ExampleService')
    parser.add_argument('--period', type=float, default=30, help='re-announce period, seconds')
    arguments = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s %(message)s')
    asyncio.run(main(arguments))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
