"""
Remote plugins and the manager that finds and instantiates them.

A remote plugin is a subclass of :class:`RemotePlugin`. Its public methods are
exposed as ``plugin.<plugin name>.<method name>``:

    >>> plugins = PluginManager()
    >>> @plugins.plugin('remote', 'clock')
    ... class Clock(RemotePlugin):
    ...     def getTime(self) -> 'date':
    ...         return datetime.datetime.now()

The plugin class is only instantiated when first loaded, and the instance is
reused for the lifetime of the manager.
"""

from collections import defaultdict
import datetime
import importlib.metadata
import inspect

import logbook

from wikirpc.exceptions import MethodDiscoveryError
from wikirpc.registry import MethodDescriptor


logger = logbook.Logger('wikirpc.plugins')

REMOTE = 'remote'
ENTRY_POINT_GROUP = 'wikirpc.remote'

TYPE_TAGS = {
    str: 'string',
    int: 'int',
    bool: 'bool',
    float: 'double',
    list: 'array',
    tuple: 'array',
    dict: 'struct',
    datetime.datetime: 'date',
    datetime.date: 'date',
    bytes: 'file',
}
TYPE_TAGS_BY_NAME = dict((cls.__name__, tag) for cls, tag in TYPE_TAGS.items())
KNOWN_TAGS = frozenset(TYPE_TAGS.values())


def type_tag(annotation, default='string'):
    """Translate a parameter or return annotation into a remote type tag."""

    if annotation is inspect.Parameter.empty or annotation is None:
        return default
    if isinstance(annotation, str):
        if annotation in KNOWN_TAGS:
            return annotation
        return TYPE_TAGS_BY_NAME.get(annotation, default)
    return TYPE_TAGS.get(annotation, default)


def remote_method(*args, **kwargs):

    """
    Annotate a plugin method with remote metadata.

    Accepts the same keywords as :class:`~wikirpc.registry.MethodDescriptor`:
    ``name`` (the remote name, if different from the Python one),
    ``public``, ``args``, ``returns`` and ``doc``. Can be used bare:

        >>> class Pages(RemotePlugin):
        ...     @remote_method(public=True, name='listPages')
        ...     def list_pages(self):
        ...         return []
    """

    def annotate(method):
        method.remote_info = kwargs
        return method

    if args:
        return annotate(*args)
    return annotate


class RemotePlugin(object):

    """
    Base class for plugins exposing remote methods.

    Every public method a subclass defines is exposed. Override
    :meth:`_get_methods` to publish an explicit list instead.

    .. py:attribute:: api
        The :class:`~wikirpc.api.Api` dispatching the current call, or
        ``None`` outside of one. Use it for ``api.to_file()`` and
        ``api.to_date()``.
    """

    api = None

    def _get_methods(self):

        """
        Collect the remote methods of this plugin by inspection.

        Returns a dict of short method names to
        :class:`~wikirpc.registry.MethodDescriptor` objects bound to this
        instance. Raises :class:`~wikirpc.exceptions.MethodDiscoveryError`
        when a method's signature cannot be inspected.
        """

        methods = {}
        inherited = set(dir(RemotePlugin))
        for attr, _ in inspect.getmembers(type(self), inspect.isfunction):
            if attr.startswith('_') or attr in inherited:
                continue
            method = getattr(self, attr)
            try:
                signature = inspect.signature(method)
            except (ValueError, TypeError) as exc:
                raise MethodDiscoveryError(
                    "Cannot inspect %s.%s" % (type(self).__name__, attr)) from exc

            info = getattr(method, 'remote_info', {})
            remote_name = info.get('name', attr)
            arg_tags = info.get('args')
            if arg_tags is None:
                arg_tags = [type_tag(param.annotation)
                            for param in signature.parameters.values()
                            if param.kind in (param.POSITIONAL_ONLY,
                                              param.POSITIONAL_OR_KEYWORD)]
            doc = info.get('doc')
            if doc is None:
                doc = (inspect.getdoc(method) or '').split('\n\n')[0] or None

            methods[remote_name] = MethodDescriptor(
                remote_name,
                handler=method,
                args=arg_tags,
                returns=info.get('returns',
                                 type_tag(signature.return_annotation, None)),
                public=info.get('public', False),
                doc=doc,
                name=attr)
        return methods


class PluginManager(object):

    """
    Registry of plugin classes, keyed by capability and plugin name.

    Plugin classes can be registered directly, with the :meth:`plugin`
    decorator, or from installed distributions publishing entry points in
    the ``wikirpc.remote`` group (see :meth:`load_entry_points`).
    """

    def __init__(self):
        self.classes = defaultdict(dict)
        self.instances = {}
        self.disabled = set()

    def register(self, capability, name, plugin_class):
        self.classes[capability][name] = plugin_class
        self.instances.pop((capability, name), None)

    def plugin(self, capability, name):
        """Decorator form of :meth:`register`."""

        def register_plugin(plugin_class):
            self.register(capability, name, plugin_class)
            return plugin_class
        return register_plugin

    def disable(self, name):
        self.disabled.add(name)

    def enable(self, name):
        self.disabled.discard(name)

    def load_entry_points(self, group=ENTRY_POINT_GROUP, capability=REMOTE):
        """Register every class published under the entry point `group`."""

        for entry_point in importlib.metadata.entry_points(group=group):
            logger.debug("Registering {0!r} plugin {1!r} from {2}",
                         capability, entry_point.name, entry_point.value)
            self.register(capability, entry_point.name, entry_point.load())

    def list(self, capability):
        """Names of enabled plugins providing `capability`, sorted."""

        return sorted(name for name in self.classes.get(capability, ())
                      if name not in self.disabled)

    def load(self, capability, name):

        """
        Return the instance of plugin `name`, creating it on first use.

        Returns ``None`` if there is no such plugin, if it is disabled, or if
        it could not be instantiated.
        """

        if name in self.disabled:
            return None
        key = (capability, name)
        if key not in self.instances:
            plugin_class = self.classes.get(capability, {}).get(name)
            if plugin_class is None:
                return None
            try:
                self.instances[key] = plugin_class()
            except Exception:
                logger.exception("Could not instantiate {0!r} plugin {1!r}",
                                 capability, name)
                return None
        return self.instances[key]


default_manager = PluginManager()
