"""
Scopes add middleware to individual requests without touching the connection shared by a resource class:

.. code-block:: python

    class Person(Resource):
        auth = Scope(lambda builder, token: builder.insert(0, TokenAuth, token))

    Person.auth('secret').find(1)

Calling a scope copies the live connection of the class with the builder returned by the scope function and
returns a :class:`RequestScope`. Nothing is sent until a method of the class is called through the scope.
"""
from contextlib import contextmanager
from contextvars import ContextVar
from functools import wraps
import inspect

from .custom import CustomMethods

_scoped_connections = ContextVar('potion_client_scoped_connections', default=None)


def scoped_connection(resource):
    """
    Returns the connection a :class:`RequestScope` has made active for ``resource``, or ``None``.
    """
    connections = _scoped_connections.get()
    if connections:
        return connections.get(resource)
    return None


@contextmanager
def use_connection(resource, connection):
    connections = dict(_scoped_connections.get() or {})
    connections[resource] = connection
    token = _scoped_connections.set(connections)
    try:
        yield connection
    finally:
        _scoped_connections.reset(token)


class Scope(object):
    """
    Declares a named scope on a resource class.

    :param callable fn: receives the :class:`middleware.Builder` followed by the arguments the scope is called
        with and returns the new builder; returning ``None`` keeps the builder unchanged
    """

    def __init__(self, fn):
        self.fn = fn
        self.name = None

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, item, owner):
        @wraps(self.fn)
        def scope(*args, **kwargs):
            return RequestScope(owner, owner.connection()).apply(self.fn, *args, **kwargs)
        return scope

    def __repr__(self):
        return '<Scope {}>'.format(self.name)


class RequestScope(object):
    """
    A deferred context holding a private copy of the connection of ``resource``.

    Attributes not found on the scope are looked up on ``target``, which defaults to ``resource``. Methods found
    this way are run with the private connection active for ``resource``, so scopes can be chained and support
    every class-level operation of the resource.

    :param resource: the resource class
    :param connection: the connection to copy
    :param target: the object to delegate to
    """

    def __init__(self, resource, connection, target=None):
        self._resource = resource
        self._connection = connection.copy()
        self._target = resource if target is None else target

    def apply(self, fn, *args, **kwargs):
        builder = fn(self._connection.builder, *args, **kwargs)
        if builder is not None:
            self._connection = self._connection.copy(builder)
        return self

    def connection(self, refresh=False):
        return self._connection

    def __getattr__(self, name):
        value = getattr(self._target, name)

        if isinstance(value, CustomMethods):
            return RequestScope(self._resource, self._connection, value)

        if not callable(value) or inspect.isclass(value):
            return value

        @wraps(value)
        def scoped(*args, **kwargs):
            with use_connection(self._resource, self._connection):
                return value(*args, **kwargs)
        return scoped

    def __repr__(self):
        return '<RequestScope {} {}>'.format(self._resource.__name__, self._connection.builder)
