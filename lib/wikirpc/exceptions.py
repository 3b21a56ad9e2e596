"""
Exceptions raised while resolving and dispatching remote methods.

:class:`RemoteError` and :class:`AccessDeniedError` are the only errors the
dispatcher lets out; everything a collaborator raises during lookup or
argument binding is re-raised as one of them. Note that
:class:`wikirpc.client.Error` doesn't live here; this module houses
server-side exceptions.
"""

# -32603 covers both "method does not exist" and "wrong parameter count".
METHOD_NOT_FOUND = -32603
ACCESS_DENIED = -32604
APPLICATION_ERROR = -32500


class WikiRPCError(Exception):
    """A generic error somewhere in the dispatcher."""
    pass


class RemoteError(WikiRPCError):

    """
    A caller-facing fault, encoded by the transport into its error format.

    .. py:attribute:: code
        A numeric fault code. Several faults share
        :data:`METHOD_NOT_FOUND`; callers must use the message to tell them
        apart.
    """

    def __init__(self, message, code=0):
        super(RemoteError, self).__init__(message, code)
        self.message = message
        self.code = code

    def __str__(self):
        return self.message


class AccessDeniedError(RemoteError):
    """Remote access is disabled, or the caller may not use the method."""

    def __init__(self, message, code=ACCESS_DENIED):
        super(AccessDeniedError, self).__init__(message, code)


class MethodDiscoveryError(WikiRPCError):
    """A plugin's remote methods could not be collected by inspection."""
    pass


class MissingArgumentWarning(UserWarning):

    """
    Emitted by a method body which notices a missing argument.

    Inside a dispatch this warning is turned into an error, so a method can
    signal a short argument list even where its signature accepts one.
    """

    pass
