from urllib.parse import urlsplit

from requests.structures import CaseInsensitiveDict
from werkzeug.http import HTTP_STATUS_CODES
from werkzeug.utils import cached_property


class Request(object):
    """
    A request travelling down the pipeline. Stages may modify :attr:`headers` and :attr:`body` in place.

    :param str method: HTTP verb
    :param str url: absolute URL
    :param headers: request headers
    :param body: request body; a string once it has passed the format stage
    """

    def __init__(self, method, url, headers=None, body=None):
        self.method = method.upper()
        self.url = url
        self.headers = CaseInsensitiveDict(headers or {})
        self.body = body

    @property
    def path(self):
        """The path and query string of :attr:`url`."""
        parts = urlsplit(self.url)
        if parts.query:
            return '{}?{}'.format(parts.path, parts.query)
        return parts.path

    def copy(self):
        return Request(self.method, self.url, self.headers.copy(), self.body)

    def __repr__(self):
        return '<Request {} {}>'.format(self.method, self.url)


class Response(object):
    """
    :param int status: HTTP status code
    :param headers: response headers
    :param body: response body; decoded once it has passed the format stage
    """

    def __init__(self, status, headers=None, body=None):
        self.status = int(status)
        self.headers = CaseInsensitiveDict(headers or {})
        self.body = body

    @property
    def reason(self):
        return HTTP_STATUS_CODES.get(self.status, '')

    @property
    def allows_body(self):
        return not (100 <= self.status < 200 or self.status in (204, 304))

    def __repr__(self):
        return '<Response [{}]>'.format(self.status)


class Connection(object):
    """
    Sends requests for one site through a middleware pipeline.

    The pipeline is composed from ``builder`` the first time it is needed. Use :meth:`copy` to get a connection to
    the same site with a different pipeline.

    :param str site: base URI; only its scheme and host are used, paths are absolute
    :param builder: a :class:`middleware.Builder`
    :param dict headers: headers sent with every request
    """

    def __init__(self, site, builder, headers=None):
        parts = urlsplit(site)
        self.site = site
        self.base_url = '{}://{}'.format(parts.scheme, parts.netloc)
        self.builder = builder
        self.headers = dict(headers or {})

    @cached_property
    def app(self):
        return self.builder.to_app()

    def copy(self, builder=None):
        return self.__class__(self.site, builder if builder is not None else self.builder, self.headers)

    def request(self, method, path, body=None, headers=None):
        request_headers = dict(self.headers)
        request_headers.update(headers or {})
        request = Request(method, self.base_url + path, request_headers, body)
        return self.app(request)

    def get(self, path, headers=None):
        return self.request('GET', path, headers=headers)

    def head(self, path, headers=None):
        return self.request('HEAD', path, headers=headers)

    def delete(self, path, headers=None):
        return self.request('DELETE', path, headers=headers)

    def post(self, path, body=None, headers=None):
        return self.request('POST', path, body, headers)

    def put(self, path, body=None, headers=None):
        return self.request('PUT', path, body, headers)

    def patch(self, path, body=None, headers=None):
        return self.request('PATCH', path, body, headers)

    def __repr__(self):
        return '<Connection {} {}>'.format(self.site, self.builder)
