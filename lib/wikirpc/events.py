"""
Named extension points.

Extensions hook into an event by name; the code that owns the event triggers
it with a mutable data object, which the hooks may modify. The remote API
uses the ``RPC_CALL_ADD`` event to let plugins publish custom call names:

    >>> events = EventHandler()
    >>> def add_calls(event):
    ...     event.data['shortcut'] = ('clock', 'getTime')
    >>> events.register_hook('RPC_CALL_ADD', BEFORE, add_calls)
    >>> data = {}
    >>> events.trigger('RPC_CALL_ADD', data)
    >>> data
    {'shortcut': ('clock', 'getTime')}
"""

from collections import defaultdict

import logbook


logger = logbook.Logger('wikirpc.events')

BEFORE = 'BEFORE'
AFTER = 'AFTER'

RPC_CALL_ADD = 'RPC_CALL_ADD'


class Event(object):

    """
    A single triggering of a named event.

    .. py:attribute:: data
        The object being passed around. Hooks modify it in place.

    .. py:attribute:: result
        The result of the default action, if there was one.
    """

    def __init__(self, name, data):
        self.name = name
        self.data = data
        self.result = None
        self.run_default = True
        self.propagate = True

    def prevent_default(self):
        self.run_default = False

    def stop_propagation(self):
        self.propagate = False


class EventHandler(object):

    def __init__(self):
        self.hooks = defaultdict(list)

    def register_hook(self, name, advise, callback):
        if advise not in (BEFORE, AFTER):
            raise ValueError("advise must be BEFORE or AFTER, not %r" % (advise,))
        self.hooks[name, advise].append(callback)

    def hook(self, name, advise=BEFORE):
        """Decorator form of :meth:`register_hook`."""

        def register(callback):
            self.register_hook(name, advise, callback)
            return callback
        return register

    def process(self, event, advise):
        for callback in self.hooks.get((event.name, advise), ()):
            callback(event)
            if not event.propagate:
                break

    def trigger(self, name, data, action=None):

        """
        Run the BEFORE hooks, the default `action`, then the AFTER hooks.

        `action` is called with the event data unless a BEFORE hook prevented
        it. Returns the action's result.
        """

        event = Event(name, data)
        logger.debug("Triggering event {0!r}", name)
        self.process(event, BEFORE)
        if event.run_default and action is not None:
            event.result = action(event.data)
        event.propagate = True
        self.process(event, AFTER)
        return event.result


default_handler = EventHandler()
