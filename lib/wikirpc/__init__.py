"""Remote method dispatch for a wiki: core methods, plugin methods and custom calls."""

__version__ = '0.1.0'

from wikirpc.api import Api
from wikirpc.auth import Caller
from wikirpc.config import Config
from wikirpc.exceptions import AccessDeniedError, RemoteError
from wikirpc.plugins import PluginManager, RemotePlugin, remote_method
