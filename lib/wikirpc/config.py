"""Server-wide settings consulted by the remote API."""

import configparser

import wikirpc


# The placeholder the wiki ships for `remoteuser`: remote access is switched
# on but nobody has been allowed to use non-public methods yet.
REMOTE_USER_NOT_SET = '!!not set!!'

DEFAULTS = {
    'remote': False,
    'remoteuser': REMOTE_USER_NOT_SET,
    'useacl': False,
    'version': None,
}

BOOLEAN_OPTIONS = ('remote', 'useacl')


class Config(object):

    """
    Settings for remote access.

    .. py:attribute:: remote
        Whether the remote API is enabled at all.

    .. py:attribute:: remoteuser
        A comma-separated list of users and ``@groups`` allowed to call
        non-public methods. An empty string lets everyone in;
        :data:`REMOTE_USER_NOT_SET` lets nobody in.

    .. py:attribute:: useacl
        Whether access control lists are enforced. When off, every caller
        may use the API (as long as `remoteuser` is set to something).

    .. py:attribute:: version
        The version string reported by ``dokuwiki.getVersion``.
    """

    def __init__(self, **options):
        unknown = set(options) - set(DEFAULTS)
        if unknown:
            raise ValueError("Unknown configuration option(s): %s" %
                             ', '.join(sorted(unknown)))
        for key, default in DEFAULTS.items():
            setattr(self, key, options.get(key, default))
        if self.version is None:
            self.version = wikirpc.__version__

    def __repr__(self):
        return 'Config(%s)' % ', '.join(
            '%s=%r' % (key, getattr(self, key)) for key in sorted(DEFAULTS))

    @classmethod
    def from_file(cls, filename, section='wikirpc'):

        """
        Read settings from a section of an INI file.

        Missing options keep their defaults; a missing section gives a
        default configuration.
        """

        parser = configparser.ConfigParser(interpolation=None)
        with open(filename) as fp:
            parser.read_file(fp)
        if not parser.has_section(section):
            return cls()

        options = {}
        for key in parser.options(section):
            if key in BOOLEAN_OPTIONS:
                options[key] = parser.getboolean(section, key)
            else:
                options[key] = parser.get(section, key)
        return cls(**options)
