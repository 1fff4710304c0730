from urllib.parse import urlsplit, urlunsplit, unquote

from .formats import lookup
from .prefix import Prefix

INHERITED_KEYS = frozenset((
    'site',
    'proxy',
    'user',
    'password',
    'auth_type',
    'timeout',
    'ssl_options',
    'format',
    'adapter',
    'stubs',
    'prefix',
    'primary_key',
    'required_fields',
    'nested_factory',
))


class ResourceConfig(object):
    """
    Configuration of one :class:`Resource` class.

    Lookups walk up the ``parent`` chain for inherited keys; ``element_name``, ``collection_name`` and
    ``singleton_name`` only ever come from the class itself. ``headers`` are merged along the chain. Writes only
    touch this configuration and bump :attr:`version`.

    :param parent: the configuration of the parent class, if any
    :param values: initial values, usually collected from ``class Meta:``
    """

    def __init__(self, parent=None, **values):
        self.parent = parent
        self.version = 0
        self._values = {}
        for key, value in values.items():
            self.set(key, value)

    def set(self, key, value):
        setter = getattr(self, '_set_{}'.format(key), None)
        if setter is not None:
            setter(value)
        else:
            self._values[key] = value
        self.version += 1

    def unset(self, key):
        if key in self._values:
            del self._values[key]
            self.version += 1

    def _set_site(self, value):
        if value is None:
            self._values['site'] = None
            return

        parts = urlsplit(value)
        if parts.username:
            self._values['user'] = unquote(parts.username)
        if parts.password:
            self._values['password'] = unquote(parts.password)

        netloc = parts.netloc.rpartition('@')[2]
        self._values['site'] = urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))

    def _set_format(self, value):
        self._values['format'] = lookup(value)

    def _set_prefix(self, value):
        if value is None:
            self._values.pop('prefix', None)
        elif isinstance(value, Prefix):
            self._values['prefix'] = value
        else:
            self._values['prefix'] = Prefix(value)

    def _set_headers(self, value):
        self._values['headers'] = dict(value or {})

    def _set_ssl_options(self, value):
        self._values['ssl_options'] = dict(value) if value is not None else None

    def _set_required_fields(self, value):
        self._values['required_fields'] = tuple(value or ())

    def get(self, key, default=None):
        if key == 'headers':
            return self.headers()

        config = self
        while config is not None:
            if key in config._values:
                value = config._values[key]
                if isinstance(value, dict):
                    return dict(value)
                return value
            if key not in INHERITED_KEYS:
                break
            config = config.parent
        return default

    def headers(self):
        headers = self.parent.headers() if self.parent is not None else {}
        headers.update(self._values.get('headers', {}))
        return headers

    def prefix(self):
        """
        The :class:`Prefix` in effect; defaults to the path of ``site`` followed by a slash.
        """
        prefix = self.get('prefix')
        if prefix is None:
            site = self.get('site')
            prefix = Prefix.from_site(urlsplit(site).path if site else '')
        return prefix

    def chain(self):
        config = self
        while config is not None:
            yield config
            config = config.parent

    def fingerprint(self):
        return tuple((id(config), config.version) for config in self.chain())

    def __repr__(self):
        return '<ResourceConfig {}>'.format(self._values)
