"""
The remote API: one namespace of core, plugin and custom-call methods.

Core methods begin with ``dokuwiki.`` or ``wiki.``, e.g. ``dokuwiki.getVersion``
or ``wiki.getPage``. Plugin methods are named
``plugin.<plugin name>.<method name>``, e.g. ``plugin.clock.getTime``. Custom
calls are arbitrary names which plugins map onto one of their methods by
hooking the ``RPC_CALL_ADD`` event:

    >>> @events.hook('RPC_CALL_ADD')
    ... def add_shortcut(event):
    ...     event.data['shortcut'] = ('clock', 'getTime')

An :class:`Api` serves a single request context. It collects each kind of
method once, on first use, and keeps the result for its lifetime; create a new
instance to pick up newly installed plugins.
"""

import inspect
import threading
import warnings

import logbook

from wikirpc.auth import Caller, is_member
from wikirpc.config import Config, REMOTE_USER_NOT_SET
from wikirpc.core import ApiCore
from wikirpc.events import RPC_CALL_ADD, default_handler
from wikirpc.exceptions import (AccessDeniedError, METHOD_NOT_FOUND,
                                MethodDiscoveryError, MissingArgumentWarning,
                                RemoteError)
from wikirpc.plugins import REMOTE, RemotePlugin, default_manager


logger = logbook.Logger('wikirpc.api')

METHOD_DOES_NOT_EXIST = 'Method does not exist'
WRONG_PARAMETER_COUNT = 'Method does not exist - wrong parameter count.'


class ArgumentGuard(object):

    """
    Scope in which missing-argument warnings become errors.

    The warnings filter list is process-wide, so the outermost entry in a
    thread holds a lock until the scope is left. Nested entries from the same
    thread (a remote method calling another one) reuse the active scope.

    The lock is held for the whole handler body, so invocations from
    different threads of one process (several :class:`~wikirpc.server.Server`
    threads, say) run one at a time. Run servers in separate processes for
    parallel dispatch, and never make a handler wait on another thread that
    dispatches.
    """

    def __init__(self):
        self.lock = threading.Lock()
        self.local = threading.local()
        self.catcher = None

    @property
    def depth(self):
        return getattr(self.local, 'depth', 0)

    def __enter__(self):
        if not self.depth:
            self.lock.acquire()
            try:
                self.catcher = warnings.catch_warnings()
                self.catcher.__enter__()
                warnings.simplefilter('error', MissingArgumentWarning)
            except BaseException:
                self.catcher = None
                self.lock.release()
                raise
        self.local.depth = self.depth + 1
        return self

    def __exit__(self, *exc_info):
        self.local.depth -= 1
        if not self.local.depth:
            try:
                self.catcher.__exit__(*exc_info)
            finally:
                self.catcher = None
                self.lock.release()
        return False


argument_guard = ArgumentGuard()


class Api(object):

    """
    Resolves, authorizes and invokes remote methods.

    :param config:
        A :class:`~wikirpc.config.Config`; defaults to remote access
        disabled.

    :param caller:
        The :class:`~wikirpc.auth.Caller` making the request (anonymous if
        unspecified).

    :param plugins:
        A :class:`~wikirpc.plugins.PluginManager` to find remote plugins in.

    :param events:
        An :class:`~wikirpc.events.EventHandler` on which ``RPC_CALL_ADD``
        is triggered.

    :param membership:
        ``membership(memberlist, user, groups) -> bool``, used to check the
        caller against ``config.remoteuser``.

    :param core_factory:
        Called with this API to create the core method provider, which must
        have a ``get_remote_info()`` method returning a mapping of names to
        :class:`~wikirpc.registry.MethodDescriptor` objects.

    :param authenticator:
        ``authenticator(user, password) -> bool``, used by
        ``dokuwiki.login``.
    """

    def __init__(self, config=None, caller=None, plugins=None, events=None,
                 membership=is_member, core_factory=ApiCore,
                 authenticator=None):
        self.config = config or Config()
        self.caller = caller or Caller()
        self.plugins = plugins if plugins is not None else default_manager
        self.events = events if events is not None else default_handler
        self.membership = membership
        self.core_factory = core_factory
        self.authenticator = authenticator

        self.methods = None
        self.api_core = None
        self.plugin_methods = None
        self.plugin_custom_calls = None

        self.date_transformation = self.dummy_transformation
        self.file_transformation = self.dummy_transformation

    def get_methods(self):
        """All core and plugin methods, keyed by remote name."""

        if self.methods is None:
            methods = dict(self.get_core_methods())
            methods.update(self.get_plugin_methods())
            self.methods = methods
        return self.methods

    def call(self, method, args=None):

        """
        Call a remote method by name.

        Names starting with ``plugin.`` only ever resolve to plugin methods;
        other names are looked up among the core methods, then among the
        custom calls.
        """

        args = [] if args is None else list(args)
        logger.debug("Dispatching {0!r} with {1} argument(s)",
                     method, len(args))

        parts = (method + '.').split('.', 2)
        if parts[0] == 'plugin':
            return self.call_plugin(parts[1], method, args)
        if method in self.get_core_methods():
            return self.call_core_method(method, args)
        return self.call_custom_call_plugin(method, args)

    def call_core_method(self, method, args):
        core_methods = self.get_core_methods()
        descriptor = core_methods.get(method)
        if descriptor is None:
            raise RemoteError(METHOD_DOES_NOT_EXIST, METHOD_NOT_FOUND)
        self.check_access(descriptor)
        self.check_argument_length(descriptor, args)
        return self.invoke(descriptor, args)

    def call_plugin(self, plugin_name, method, args):
        plugin = self.plugins.load(REMOTE, plugin_name)
        if not isinstance(plugin, RemotePlugin):
            logger.debug("No remote plugin named {0!r}", plugin_name)
            raise RemoteError(METHOD_DOES_NOT_EXIST, METHOD_NOT_FOUND)
        descriptor = self.get_plugin_methods().get(method)
        if descriptor is None:
            raise RemoteError(METHOD_DOES_NOT_EXIST, METHOD_NOT_FOUND)
        self.check_access(descriptor)
        self.check_argument_length(descriptor, args)
        return self.invoke(descriptor, args, plugin)

    def call_custom_call_plugin(self, method, args):
        custom_calls = self.get_custom_call_plugins()
        if method not in custom_calls:
            raise RemoteError(METHOD_DOES_NOT_EXIST, METHOD_NOT_FOUND)
        try:
            plugin_name, plugin_method = custom_calls[method]
        except (TypeError, ValueError):
            logger.warning("Malformed custom call {0!r}: {1!r}",
                           method, custom_calls[method])
            raise RemoteError(METHOD_DOES_NOT_EXIST, METHOD_NOT_FOUND)
        full_method = 'plugin.%s.%s' % (plugin_name, plugin_method)
        logger.debug("Custom call {0!r} resolves to {1!r}",
                     method, full_method)
        return self.call_plugin(plugin_name, full_method, args)

    def invoke(self, descriptor, args, plugin=None):

        """
        Run a method's handler with positional `args`.

        Arguments which cannot be bound to the handler's signature, and
        :class:`~wikirpc.exceptions.MissingArgumentWarning` raised while it
        runs, both fail with the wrong-parameter-count error. Handlers
        without an inspectable signature get the same treatment for any
        `TypeError` they raise. A `plugin` sees this API as its ``api``
        attribute for the duration of the call.
        """

        handler = descriptor.handler
        with argument_guard:
            try:
                inspect.signature(handler).bind(*args)
            except TypeError as exc:
                raise RemoteError(WRONG_PARAMETER_COUNT,
                                  METHOD_NOT_FOUND) from exc
            except ValueError:
                bound = False
            else:
                bound = True

            previous_api = plugin.api if plugin is not None else None
            if plugin is not None:
                plugin.api = self
            try:
                return handler(*args)
            except MissingArgumentWarning as exc:
                raise RemoteError(WRONG_PARAMETER_COUNT,
                                  METHOD_NOT_FOUND) from exc
            except TypeError as exc:
                if bound:
                    raise
                raise RemoteError(WRONG_PARAMETER_COUNT,
                                  METHOD_NOT_FOUND) from exc
            finally:
                if plugin is not None:
                    plugin.api = previous_api

    def check_access(self, descriptor):
        if not descriptor.public:
            self.force_access()

    def check_argument_length(self, descriptor, args):
        if len(args) > len(descriptor.args):
            raise RemoteError(WRONG_PARAMETER_COUNT, METHOD_NOT_FOUND)

    def has_access(self):

        """
        Whether the caller may use non-public remote methods.

        Raises :class:`~wikirpc.exceptions.AccessDeniedError` if remote access
        is disabled altogether.
        """

        if not self.config.remote:
            raise AccessDeniedError('server error. RPC server not enabled.')
        remoteuser = self.config.remoteuser.strip()
        if remoteuser == REMOTE_USER_NOT_SET:
            return False
        if not self.config.useacl:
            return True
        if remoteuser == '':
            return True
        return self.membership(self.config.remoteuser,
                               self.caller.user,
                               list(self.caller.groups))

    def force_access(self):
        if not self.has_access():
            logger.warning("Denied remote access to {0!r}", self.caller)
            raise AccessDeniedError(
                'server error. not authorized to call method')

    def get_plugin_methods(self):

        """
        Collect the methods of all enabled remote plugins.

        Raises :class:`~wikirpc.exceptions.RemoteError` if a plugin isn't a
        :class:`~wikirpc.plugins.RemotePlugin`, or its methods can't be
        collected.
        """

        if self.plugin_methods is None:
            plugin_methods = {}
            for plugin_name in self.plugins.list(REMOTE):
                plugin = self.plugins.load(REMOTE, plugin_name)
                if not isinstance(plugin, RemotePlugin):
                    raise RemoteError(
                        "Plugin %s does not implement "
                        "wikirpc.plugins.RemotePlugin" % plugin_name)
                try:
                    for name, descriptor in plugin._get_methods().items():
                        full_name = 'plugin.%s.%s' % (plugin_name, name)
                        plugin_methods[full_name] = \
                            descriptor.requalify(full_name).bind(plugin)
                except MethodDiscoveryError as exc:
                    raise RemoteError('Automatic aggregation of available '
                                      'remote methods failed', 0) from exc
            logger.info("Collected {0} remote plugin method(s)",
                        len(plugin_methods))
            self.plugin_methods = plugin_methods
        return self.plugin_methods

    def get_core_methods(self, api_core=None):

        """
        Return the core methods, creating their provider on first use.

        :param api_core:
            A provider to use instead of the default one. Only takes effect
            if passed before the core methods are first used.
        """

        if self.api_core is None:
            if api_core is None:
                self.api_core = self.core_factory(self)
            else:
                self.api_core = api_core
        return self.api_core.get_remote_info()

    def get_custom_call_plugins(self):
        """Custom call names mapped to ``(plugin, method)`` pairs."""

        if self.plugin_custom_calls is None:
            data = {}
            self.events.trigger(RPC_CALL_ADD, data)
            self.plugin_custom_calls = data
        return self.plugin_custom_calls

    def to_file(self, data):
        return self.file_transformation(data)

    def to_date(self, data):
        return self.date_transformation(data)

    def dummy_transformation(self, data):
        return data

    def set_date_transformation(self, date_transformation):
        self.date_transformation = date_transformation

    def set_file_transformation(self, file_transformation):
        self.file_transformation = file_transformation
