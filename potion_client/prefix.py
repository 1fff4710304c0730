"""
URL prefix templates for nested resources.

A prefix is the part of a resource path in front of the collection name. It can contain ``:placeholder`` tokens
that are filled in from the *prefix options* of a request:

>>> prefix = Prefix('/accounts/:account_id/')
>>> prefix.parameters
frozenset({'account_id'})
>>> prefix({'account_id': 19})
'/accounts/19/'
"""
import re
from datetime import date, datetime
from urllib.parse import urlencode

from werkzeug.utils import cached_property

from .exceptions import MissingPrefixParam
from .utils import escape, blank

PLACEHOLDER = re.compile(r':(\w+)')


class Prefix(object):
    """
    A compiled prefix template.

    :param str source: the template, e.g. ``/posts/:post_id/``
    """

    def __init__(self, source='/'):
        self.source = source

    @cached_property
    def parameters(self):
        return frozenset(PLACEHOLDER.findall(self.source))

    def __call__(self, options=None):
        options = options or {}

        def substitute(match):
            key = match.group(1)
            try:
                value = options[key]
            except KeyError:
                raise MissingPrefixParam('{} prefix_option is missing'.format(key))
            return escape(value)

        return PLACEHOLDER.sub(substitute, self.source)

    def check(self, options):
        """
        Ensures every placeholder is present and not blank in ``options``.

        :raises MissingPrefixParam: naming the first missing placeholder
        """
        options = options or {}
        for key in sorted(self.parameters):
            if blank(options.get(key)):
                raise MissingPrefixParam('{} prefix_option is missing'.format(key))

    def split(self, options):
        """
        Partitions ``options`` into a tuple of ``(prefix_options, query_options)``. Keys that are not non-empty
        strings are dropped.
        """
        prefix_options, query_options = {}, {}
        for key, value in (options or {}).items():
            if not isinstance(key, str) or not key:
                continue
            if key in self.parameters:
                prefix_options[key] = value
            else:
                query_options[key] = value
        return prefix_options, query_options

    @classmethod
    def from_site(cls, site_path):
        if not site_path.endswith('/'):
            site_path += '/'
        return cls(site_path)

    def __eq__(self, other):
        return isinstance(other, Prefix) and other.source == self.source

    def __hash__(self):
        return hash(self.source)

    def __repr__(self):
        return '{}({})'.format(self.__class__.__name__, repr(self.source))


def _query_value(value):
    if value is None:
        return ''
    if value is True:
        return 'true'
    if value is False:
        return 'false'
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _query_pairs(key, value):
    if isinstance(value, dict):
        for sub_key in sorted(value, key=str):
            yield from _query_pairs('{}[{}]'.format(key, sub_key), value[sub_key])
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _query_pairs('{}[]'.format(key), item)
    else:
        yield key, _query_value(value)


def to_query(options):
    """
    Builds a query string from ``options``, sorted by key; lists become ``key[]=`` pairs and mappings become
    ``key[sub]=`` pairs.

    >>> to_query({'degrees': 'fahrenheit', 'lunar': True})
    'degrees=fahrenheit&lunar=true'
    """
    pairs = []
    for key in sorted(options, key=str):
        pairs.extend(_query_pairs(str(key), options[key]))
    return urlencode(pairs)


def query_string(options):
    if not options:
        return ''
    return '?{}'.format(to_query(options))
