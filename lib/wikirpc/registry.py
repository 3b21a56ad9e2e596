from wikirpc.exceptions import (METHOD_NOT_FOUND, MethodDiscoveryError,
                                RemoteError)


def implementation_name(qualified_name):
    """The last dot-segment of a remote method name."""

    return qualified_name.split('.')[-1]


class MethodDescriptor(object):

    """
    Metadata for one remote method.

    .. py:attribute:: qualified_name
        The key of the method in the remote namespace, e.g.
        ``'wiki.getPage'`` or ``'plugin.clock.getTime'``. Plugin descriptors
        start out with their short name and are re-keyed when the API
        collects them.

    .. py:attribute:: name
        Name of the underlying callable; defaults to the last dot-segment of
        the qualified name.

    .. py:attribute:: args
        A tuple of type tags, one per positional parameter. Only its length
        is used: callers may not pass more arguments than this.

    .. py:attribute:: returns
        A type tag for the return value. Documentation only.

    .. py:attribute:: public
        If true, the method can be called without passing the access check
        (used by ``dokuwiki.login``).

    .. py:attribute:: handler
        The callable actually invoked, or ``None`` until the descriptor is
        bound to a target with :meth:`bind`.
    """

    def __init__(self, qualified_name, handler=None, args=(), returns=None,
                 public=False, doc=None, name=None):
        self.qualified_name = qualified_name
        self.handler = handler
        self.args = tuple(args)
        self.returns = returns
        self.public = bool(public)
        self.doc = doc
        self.name = name or implementation_name(qualified_name)

    def __repr__(self):
        return '<MethodDescriptor %s(%s) -> %s>' % (
            self.qualified_name, ', '.join(self.args), self.returns)

    def bind(self, target):
        """Return a copy with the handler looked up on `target`."""

        handler = self.handler or getattr(target, self.name, None)
        if not callable(handler):
            raise MethodDiscoveryError("%r has no remote method %r" %
                                       (target, self.name))
        return self.requalify(self.qualified_name, handler=handler)

    def requalify(self, qualified_name, handler=None):
        """Return a copy under a different key, keeping the implementation name."""

        return type(self)(qualified_name,
                          handler=handler or self.handler,
                          args=self.args,
                          returns=self.returns,
                          public=self.public,
                          doc=self.doc,
                          name=self.name)

    def as_dict(self):
        info = {'args': list(self.args),
                'name': self.name,
                'return': self.returns,
                'public': int(self.public)}
        if self.doc:
            info['doc'] = self.doc
        return info


class Registry(dict):

    """
    A table of remote methods, keyed by qualified name.

    Begin by creating a registry and registering methods on it:

        >>> registry = Registry()
        >>> @registry.method(name='math.add', args=['int', 'int'], returns='int')
        ... def add(value1, value2):
        ...     return value1 + value2

    Each value is a :class:`MethodDescriptor` holding the handler. You can
    also dispatch to methods by calling the registry itself:

        >>> registry('math.add', 3, 4)
        7
    """

    def method(self, *args, **kwargs):
        def register_method(method):
            name = kwargs.get('name', method.__name__)
            self[name] = MethodDescriptor(
                name, handler=method,
                args=kwargs.get('args', ()),
                returns=kwargs.get('returns'),
                public=kwargs.get('public', False),
                doc=kwargs.get('doc', method.__doc__))
            return method

        if args:
            return register_method(*args)
        return register_method

    def __call__(self, method_name, *args, **kwargs):
        try:
            descriptor = self[method_name]
        except KeyError:
            raise RemoteError('Method does not exist', METHOD_NOT_FOUND)
        return descriptor.handler(*args, **kwargs)
