from contextlib import closing
from itertools import repeat
import traceback

import logbook
from bson import BSON, Binary
from bson.errors import InvalidDocument
import zmq

from wikirpc.api import Api
from wikirpc.concurrency import DummyCallback
from wikirpc.exceptions import APPLICATION_ERROR, RemoteError


logger = logbook.Logger('wikirpc.server')
run_logger = logbook.Logger('wikirpc.server.run')


def default_api_factory(message):
    return Api()


class Server(object):

    """
    A server for the remote API.

    A :class:`Server` listens on a ``zmq.REP`` socket for incoming requests,
    dispatches each one to a fresh :class:`~wikirpc.api.Api` and returns the
    result. All communication is BSON-encoded. Requests look like
    ``{"id": ..., "method": "wiki.getPage", "params": [...]}``.

    Usage is pretty simple:

        >>> server = Server('tcp://127.0.0.1:7341', api_factory)
        >>> server.run()

    You could even start a new thread, using the server's `run()` method as
    the target.

    .. py:attribute:: addr
        The address to bind or connect to as a ZeroMQ-style address. Examples
        include ``'tcp://*:7341'`` and ``'inproc://wikirpc'``.

    .. py:attribute:: api_factory
        Called with each decoded request message, returning the
        :class:`~wikirpc.api.Api` to dispatch it with. This is where the
        caller's identity, the configuration and the plugins come from.

    .. py:attribute:: connect
        A boolean indicating whether the server should bind or connect to its
        address. Default is ``False``, so the server will bind.

    .. py:attribute:: context
        A ``zmq.Context`` to use when creating sockets. Can be left unspecified
        and the global context instance will be used.
    """

    def __init__(self, addr, api_factory=default_api_factory, connect=False,
                 context=None):
        self.context = context or zmq.Context.instance()
        self.addr = addr
        self.connect = connect
        self.api_factory = api_factory

    def get_api(self, message):
        api = self.api_factory(message)
        # BSON carries datetimes natively, but raw bytes need wrapping.
        api.set_file_transformation(Binary)
        return api

    def get_response(self, api, method, params):

        """
        Call a remote method, returning the result in BSON-serializable form.

        The behaviour of this function is to capture either a successful return
        value or exception in a BSON-serializable form (a dictionary with
        `result` and `error` keys). Remote errors keep their code; anything
        else is reported as an application error.
        """

        result, error = None, None
        try:
            result = api.call(method, params)
        except Exception as exc:
            exc_type = "%s.%s" % (type(exc).__module__, type(exc).__name__)
            if isinstance(exc, RemoteError):
                code, exc_message = exc.code, exc.message
            else:
                logger.exception("Remote method {0!r} failed", method)
                code = APPLICATION_ERROR
                exc_message = traceback.format_exception_only(
                    type(exc), exc)[-1].strip()
            error = {"type": exc_type,
                     "message": exc_message,
                     "code": code}
            try:
                BSON.encode({'args': list(exc.args)})
            except InvalidDocument:
                pass
            else:
                error["args"] = list(exc.args)

        return {'result': result, 'error': error}

    def process_message(self, message):

        """
        Process a single message.

        At the moment this just does some logging and dispatches to
        :meth:`get_response` with an API from :attr:`api_factory`. You can
        override this in a subclass to customize the way messages are
        interpreted.
        """

        if 'id' in message:
            logger.debug("Processing message {0}: {1!r}",
                         message['id'], message['method'])
        else:
            logger.debug("Processing method {0!r}", message['method'])

        response = self.get_response(self.get_api(message),
                                     message['method'],
                                     message.get('params'))
        if 'id' in message:
            response['id'] = message['id']
        return response

    def run(self, die_after=None, callback=DummyCallback()):

        """
        Run the server, optionally dying after a number of requests.

        :param int die_after:
            Die after processing a set number of messages (default: continue
            forever).

        :param callback:
            A :class:`~wikirpc.concurrency.Callback` which will be called with
            the socket once it has been successfully connected or bound.
        """

        with callback.catch_exceptions():
            socket = self.context.socket(zmq.REP)
            if self.connect:
                run_logger.debug("Replying to requests from {0!r}", self.addr)
                socket.connect(self.addr)
            else:
                run_logger.debug("Listening for requests on {0!r}", self.addr)
                socket.bind(self.addr)
        callback.send(socket)

        iterator = die_after and repeat(None, die_after) or repeat(None)
        with run_logger.catch_exceptions(), closing(socket):
            try:
                for _ in iterator:
                    message = BSON(socket.recv()).decode()
                    socket.send(BSON.encode(self.process_message(message)))
            except zmq.ZMQError as exc:
                if exc.errno != zmq.ETERM:
                    raise
