"""
Request pipeline.

Every request passes through a chain of stages before it reaches the transport adapter. A stage is a
:class:`Middleware`: it is constructed with the next callable in the chain and is itself called with a
:class:`connection.Request`, returning a :class:`connection.Response`.

The chain is described by an immutable :class:`Builder`:

.. code-block:: python

    builder = Builder().use(RemoveRoot).use(RaiseError).use(JsonFormat).with_adapter(adapter)
    app = builder.to_app()
"""
import logging
import threading
import time
from collections import namedtuple

from requests.auth import HTTPBasicAuth, HTTPDigestAuth
from requests.utils import parse_dict_header

from . import signals
from .exceptions import ConnectionError, Redirection, ClientError, BadRequest, UnauthorizedAccess, \
    ForbiddenAccess, ResourceNotFound, MethodNotAllowed, ResourceConflict, ResourceGone, ResourceInvalid, \
    ServerError
from .utils import remove_root

logger = logging.getLogger(__name__)


class Middleware(object):
    """
    Base class for pipeline stages. The default implementation passes the request through unchanged.

    :param app: the next stage, or the adapter
    """

    def __init__(self, app):
        self.app = app

    def __call__(self, request):
        return self.app(request)


class RemoveRoot(Middleware):
    """
    Unwraps decoded response bodies that consist of a single root key.
    """

    def __call__(self, request):
        response = self.app(request)
        response.body = remove_root(response.body)
        return response


class BasicAuth(Middleware):

    def __init__(self, app, user, password=None):
        super(BasicAuth, self).__init__(app)
        self.auth = HTTPBasicAuth(user, password or '')

    def __call__(self, request):
        return self.app(self.auth(request))


class DigestAuth(Middleware):
    """
    HTTP digest authentication. The first request to a server goes out without credentials; when it is rejected
    with a ``Digest`` challenge, a signed copy of the request is sent once more. The challenge is kept so that later
    requests from the same thread are signed right away.
    """

    def __init__(self, app, user, password=None):
        super(DigestAuth, self).__init__(app)
        self.auth = HTTPDigestAuth(user, password or '')
        self._local = threading.local()

    @property
    def challenge(self):
        return getattr(self._local, 'challenge', None)

    @challenge.setter
    def challenge(self, value):
        self._local.challenge = value

    def _sign(self, request):
        self.auth.init_per_thread_state()
        # build_digest_header reads the challenge from the per-thread state of HTTPDigestAuth
        self.auth._thread_local.chal = self.challenge
        header = self.auth.build_digest_header(request.method, request.url)
        if header:
            request.headers['Authorization'] = header

    def __call__(self, request):
        if self.challenge:
            self._sign(request)

        try:
            return self.app(request)
        except UnauthorizedAccess as e:
            challenge = e.response.headers.get('WWW-Authenticate', '')
            scheme, _, params = challenge.partition(' ')
            if scheme.lower() != 'digest':
                raise

            logger.debug('Retrying %s %s with digest credentials', request.method, request.url)
            self.challenge = parse_dict_header(params)
            request = request.copy()
            self._sign(request)
            return self.app(request)


REDIRECTION_CODES = (301, 302, 303, 307)

CLIENT_ERRORS = {
    400: BadRequest,
    401: UnauthorizedAccess,
    403: ForbiddenAccess,
    404: ResourceNotFound,
    405: MethodNotAllowed,
    409: ResourceConflict,
    410: ResourceGone,
    422: ResourceInvalid,
}


def raise_for_status(response):
    """
    Raises the :class:`exceptions.ConnectionError` subclass matching the status of ``response``; successful and
    non-redirecting 3xx responses pass.
    """
    status = response.status

    if status in REDIRECTION_CODES:
        raise Redirection(response)
    if 200 <= status < 400:
        return
    if status in CLIENT_ERRORS:
        raise CLIENT_ERRORS[status](response)
    if 400 <= status < 500:
        raise ClientError(response)
    if 500 <= status < 600:
        raise ServerError(response)
    raise ConnectionError(response, 'Unknown response code: {}'.format(status))


class RaiseError(Middleware):

    def __call__(self, request):
        response = self.app(request)
        raise_for_status(response)
        return response


class Logger(Middleware):
    """
    Times each request and sends :data:`signals.request` once the response is in.
    """

    def __call__(self, request):
        start = time.perf_counter()
        response = self.app(request)
        duration = (time.perf_counter() - start) * 1000

        signals.request.send(self,
                             method=request.method,
                             url=request.url,
                             response=response,
                             duration=duration)
        return response


class Handler(namedtuple('Handler', ('klass', 'args', 'kwargs'))):
    """
    Describes one pipeline stage: the :class:`Middleware` class and the extra arguments it is constructed with.
    """

    def build(self, app):
        return self.klass(app, *self.args, **self.kwargs)

    def __repr__(self):
        return 'Handler({})'.format(self.klass.__name__)


class Builder(object):
    """
    An ordered, immutable list of :class:`Handler` objects plus the adapter at the bottom of the chain.

    All modifying methods return a new :class:`Builder`. A stage can be addressed either by its position or by its
    :class:`Middleware` class; a class matches its subclasses too, so ``builder.swap(Format, XmlFormat)`` replaces
    whichever format is in use.

    :param handlers: iterable of :class:`Handler`
    :param adapter: callable taking a request and returning a response
    """

    def __init__(self, handlers=(), adapter=None):
        self.handlers = tuple(handlers)
        self.adapter = adapter

    def _index(self, key):
        if isinstance(key, int):
            return key

        for i, handler in enumerate(self.handlers):
            if issubclass(handler.klass, key):
                return i
        raise ValueError('{} is not in the middleware stack'.format(key.__name__))

    def _replace(self, handlers):
        return Builder(handlers, self.adapter)

    def use(self, klass, *args, **kwargs):
        return self._replace(self.handlers + (Handler(klass, args, kwargs),))

    def insert(self, index, klass, *args, **kwargs):
        handlers = list(self.handlers)
        handlers.insert(self._index(index), Handler(klass, args, kwargs))
        return self._replace(handlers)

    insert_before = insert

    def insert_after(self, index, klass, *args, **kwargs):
        index = self._index(index)
        if index < 0:
            index += len(self.handlers)
        return self.insert(index + 1, klass, *args, **kwargs)

    def swap(self, index, klass, *args, **kwargs):
        handlers = list(self.handlers)
        handlers[self._index(index)] = Handler(klass, args, kwargs)
        return self._replace(handlers)

    def delete(self, klass):
        handlers = list(self.handlers)
        del handlers[self._index(klass)]
        return self._replace(handlers)

    def with_adapter(self, adapter):
        return Builder(self.handlers, adapter)

    def to_app(self):
        """
        Composes the stages around the adapter and returns the outermost stage.
        """
        if self.adapter is None:
            raise RuntimeError('No adapter configured for {}'.format(self))

        app = self.adapter
        for handler in reversed(self.handlers):
            app = handler.build(app)
        return app

    def __contains__(self, klass):
        return any(issubclass(handler.klass, klass) for handler in self.handlers)

    def __iter__(self):
        return iter(self.handlers)

    def __len__(self):
        return len(self.handlers)

    def __eq__(self, other):
        return isinstance(other, Builder) and self.handlers == other.handlers and self.adapter is other.adapter

    def __ne__(self, other):
        return not self == other

    __hash__ = None

    def __repr__(self):
        return '<Builder [{}]>'.format(', '.join(handler.klass.__name__ for handler in self.handlers))
