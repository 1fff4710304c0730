"""
Transport adapters sit at the bottom of the pipeline. An adapter is any callable that takes a
:class:`connection.Request` and returns a :class:`connection.Response` with an undecoded body.
"""
import logging
from collections import namedtuple
from urllib.parse import urlsplit, parse_qsl

import requests
from werkzeug.test import Client

from .connection import Response
from .exceptions import ConnectionError, TimeoutError, SSLError
from .utils import unpack

logger = logging.getLogger(__name__)


class RequestsAdapter(object):
    """
    Sends requests over the network using a :class:`requests.Session`.

    :param session: optional session to reuse
    :param timeout: timeout in seconds
    :param str proxy: proxy URI used for both HTTP and HTTPS
    :param dict ssl_options: ``verify`` (bool or CA bundle path), ``ca_file`` (CA bundle path) and ``cert``
        (client certificate path or ``(cert, key)`` tuple)
    """

    def __init__(self, session=None, timeout=None, proxy=None, ssl_options=None):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.proxy = proxy
        self.ssl_options = dict(ssl_options or {})

    def _options(self):
        options = {'timeout': self.timeout, 'allow_redirects': False}
        if self.proxy:
            options['proxies'] = {'http': self.proxy, 'https': self.proxy}
        if 'ca_file' in self.ssl_options:
            options['verify'] = self.ssl_options['ca_file']
        if 'verify' in self.ssl_options:
            options['verify'] = self.ssl_options['verify']
        if 'cert' in self.ssl_options:
            options['cert'] = self.ssl_options['cert']
        return options

    def __call__(self, request):
        body = request.body
        if isinstance(body, str):
            body = body.encode('utf-8')

        try:
            response = self.session.request(request.method,
                                            request.url,
                                            headers=dict(request.headers),
                                            data=body,
                                            **self._options())
        except requests.Timeout as e:
            raise TimeoutError('Request timed out: {}'.format(e))
        except requests.exceptions.SSLError as e:
            raise SSLError(str(e))
        except requests.RequestException as e:
            raise ConnectionError(message=str(e))

        return Response(response.status_code, response.headers, response.text)


class WSGIAdapter(object):
    """
    Dispatches requests to a WSGI application in the same process.

    :param app: WSGI application, e.g. a :class:`flask.Flask` instance
    """

    def __init__(self, app):
        self.app = app
        self.client = Client(app)

    def __call__(self, request):
        parts = urlsplit(request.url)
        response = self.client.open(parts.path,
                                    base_url='{}://{}'.format(parts.scheme, parts.netloc),
                                    query_string=parts.query,
                                    method=request.method,
                                    headers=list(request.headers.items()),
                                    data=request.body)
        return Response(response.status_code, dict(response.headers), response.get_data(as_text=True))


class StubNotFound(LookupError):

    def __init__(self, request):
        super(StubNotFound, self).__init__('No stub for {} {}'.format(request.method, request.path))
        self.request = request


Stub = namedtuple('Stub', ('method', 'path', 'query', 'headers', 'response'))


def _split(path):
    path, _, query = path.partition('?')
    return path, sorted(parse_qsl(query, keep_blank_values=True))


class Stubs(object):
    """
    A table of canned responses for the ``'test'`` adapter:

    .. code-block:: python

        stubs.get('/people/1.json', '{"person": {"id": 1, "name": "Matz"}}')
        stubs.post('/people.json', status=201, headers={'Location': '/people/5.json'})

    A response is either a ``(status, headers, body)`` tuple or a callable that receives the
    :class:`connection.Request` and returns such a tuple, or ``None`` to defer to later stubs. Stubs are consulted
    in the order they were added. Every request that is answered is recorded in :attr:`requests`.
    """

    def __init__(self):
        self.stubs = []
        self.requests = []

    def add(self, method, path, response, request_headers=None):
        """
        :param str method: HTTP verb
        :param str path: path, optionally with a query string; query parameter order does not matter
        :param response: response tuple or callable
        :param dict request_headers: headers the request must carry for the stub to match
        """
        path, query = _split(path)
        self.stubs.append(Stub(method.upper(), path, query, dict(request_headers or {}), response))
        return self

    def _verb(method):
        def add(self, path, body='', status=200, headers=None, request_headers=None):
            response = body if callable(body) else (status, headers or {}, body)
            return self.add(method, path, response, request_headers)

        add.__name__ = method.lower()
        return add

    get = _verb('GET')
    head = _verb('HEAD')
    post = _verb('POST')
    put = _verb('PUT')
    patch = _verb('PATCH')
    delete = _verb('DELETE')

    del _verb

    def match(self, request):
        path, query = _split(request.path)

        for stub in self.stubs:
            if stub.method != request.method or stub.path != path or stub.query != query:
                continue
            if any(request.headers.get(key) != value for key, value in stub.headers.items()):
                continue

            response = stub.response
            if callable(response):
                response = response(request)
                if response is None:
                    continue

            self.requests.append(request)
            return response

        raise StubNotFound(request)

    def clear(self):
        self.stubs = []
        self.requests = []

    @property
    def last_request(self):
        return self.requests[-1] if self.requests else None


stubs = Stubs()


class TestAdapter(object):
    """
    Answers requests from a :class:`Stubs` table instead of the network.
    """
    __test__ = False

    def __init__(self, stubs):
        self.stubs = stubs

    def __call__(self, request):
        status, headers, body = unpack(self.stubs.match(request))
        logger.debug('Stubbed %s %s -> %d', request.method, request.path, status)
        return Response(status, headers, body)
