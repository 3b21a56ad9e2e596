import uuid

from bson import BSON
import zmq

from wikirpc.exceptions import ACCESS_DENIED, METHOD_NOT_FOUND


# Fault codes with a fixed server-side type, for errors that arrive untyped.
FAULT_TYPES = {
    METHOD_NOT_FOUND: 'RemoteError',
    ACCESS_DENIED: 'AccessDeniedError',
}

# Client error classes follow the dispatcher's exception hierarchy.
FAULT_PARENTS = {
    'AccessDeniedError': 'RemoteError',
}


class ErrorType(type):

    """
    Builds and caches one :class:`Error` subclass per remote fault type.

    Classes are keyed both by the short name (``'AccessDeniedError'``) and by
    the full dotted type the server reports; the latter subclasses the
    former. Short names listed in :data:`FAULT_PARENTS` subclass their parent,
    so catching ``Error.RemoteError`` also catches access denials.
    """

    def _get_error_cls(cls, error_type):
        short_type = error_type.split('.')[-1]
        if short_type not in cls._class_cache:
            parent = cls
            if short_type in FAULT_PARENTS:
                parent = cls._get_error_cls(FAULT_PARENTS[short_type])
            cls._class_cache[short_type] = type(short_type, (parent,), {})
        if error_type not in cls._class_cache:
            cls._class_cache[error_type] = type(
                short_type, (cls._class_cache[short_type],), {})
        return cls._class_cache[error_type]

    def for_code(cls, code):
        """The error class for a fault code, or `cls` for unknown codes."""

        if code not in FAULT_TYPES:
            return cls
        return cls._get_error_cls(FAULT_TYPES[code])

    # `Error.RemoteError` => the cached error class.
    def __getattr__(cls, name):
        if name.startswith('_'):
            raise AttributeError(name)
        return cls._get_error_cls(name)

    # `Error['wikirpc.exceptions.AccessDeniedError']` => the cached error class.
    __getitem__ = _get_error_cls


class Error(Exception, metaclass=ErrorType):

    """
    A fault returned by the server.

    Instances belong to classes named after the server-side exception type,
    so callers can catch ``Error.AccessDeniedError`` or
    ``Error['wikirpc.exceptions.RemoteError']``. A fault without a type is
    classified by its code (see :meth:`ErrorType.for_code`).
    """

    _class_cache = {}

    def __new__(cls, request, response):
        error = response['error']
        if error.get('type'):
            error_cls = cls._get_error_cls(error['type'])
        else:
            error_cls = cls.for_code(error.get('code'))
        return super(Error, cls).__new__(error_cls, request, response)

    def __init__(self, request, response):
        super(Error, self).__init__(request, response)
        self.request = request
        self.response = response

    def __repr__(self):
        return 'Error[%s](%s)' % (self.type, self.code)

    def __str__(self):
        return self.message

    @property
    def id(self):
        return self.request['id']

    @property
    def method(self):
        return self.request['method']

    @property
    def params(self):
        return self.request['params']

    @property
    def type(self):
        return self.response['error'].get('type')

    @property
    def message(self):
        return self.response['error']['message']

    @property
    def code(self):
        return self.response['error'].get('code')


class Client(object):

    """
    Calls remote methods on a :class:`~wikirpc.server.Server`.

    Dotted method names map onto attribute access:

        >>> client = Client('tcp://127.0.0.1:7341')
        >>> client.plugin.clock.getTime()
        >>> client.wiki.getRPCVersionSupported()
        2
    """

    def __init__(self, addr, context=None):
        self.context = context or zmq.Context.instance()
        self.addr = addr
        self.socket = self.context.socket(zmq.REQ)
        self.socket.connect(self.addr)

    def __getattr__(self, method):
        return self[method]

    def __getitem__(self, method):
        return ClientMethod(self, method)

    def close(self):
        self.socket.close()

    def _process_response(self, request, response):
        if not response['error']:
            return response['result']
        raise Error(request, response)

    def __call__(self, method, *params):
        request = {"id": get_uuid(),
                   "method": method,
                   "params": list(params)}
        self.socket.send(BSON.encode(request))
        return self._process_response(request,
                                      BSON(self.socket.recv()).decode())


class ClientMethod(object):

    def __init__(self, client, method):
        self.__client = client
        self.__method = method

    def __getattr__(self, attr):
        return self[attr]

    def __getitem__(self, item):
        return ClientMethod(self.__client, '%s.%s' % (self.__method, item))

    def __call__(self, *args):
        return self.__client(self.__method, *args)


def get_uuid():
    return str(uuid.uuid4()).replace('-', '')
