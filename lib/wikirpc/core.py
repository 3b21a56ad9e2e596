"""The built-in ``dokuwiki.*`` and ``wiki.*`` remote methods."""

import time

from wikirpc.registry import Registry


API_VERSION = 11
RPC_VERSION_SUPPORTED = 2


class ApiCore(object):

    """
    Default provider of core remote methods.

    The handlers are bound methods of this object, registered once when it
    is created; :meth:`get_remote_info` hands the same :class:`Registry`
    back on every call.
    """

    def __init__(self, api):
        self.api = api
        self.registry = Registry()

        method = self.registry.method
        method(self.get_version, name='dokuwiki.getVersion',
               returns='string')
        method(self.get_time, name='dokuwiki.getTime', returns='int')
        method(self.get_api_version, name='dokuwiki.getXMLRPCAPIVersion',
               returns='int', public=True)
        method(self.get_rpc_version_supported,
               name='wiki.getRPCVersionSupported', returns='int', public=True)
        method(self.login, name='dokuwiki.login', args=['string', 'string'],
               returns='bool', public=True)
        method(self.who_am_i, name='dokuwiki.whoAmI', returns='struct')
        method(self.list_methods, name='dokuwiki.getMethods',
               returns='array')

    def get_remote_info(self):
        return self.registry

    def get_version(self):
        """Return the version of the wiki."""
        return self.api.config.version

    def get_time(self):
        """Return the current server time as a unix timestamp."""
        return int(time.time())

    def get_api_version(self):
        """Return the version of the remote API."""
        return API_VERSION

    def get_rpc_version_supported(self):
        """Return the supported RPC API version."""
        return RPC_VERSION_SUPPORTED

    def login(self, user, password):

        """
        Check a user's credentials.

        Returns ``False`` if no authenticator is configured, or if the
        authenticator rejects the credentials.
        """

        if self.api.authenticator is None:
            return False
        return bool(self.api.authenticator(user, password))

    def who_am_i(self):
        """Return the name and groups of the calling user."""
        caller = self.api.caller
        return {'user': caller.user, 'groups': list(caller.groups)}

    def list_methods(self):
        """Return the names of all available remote methods."""
        return sorted(self.api.get_methods())

