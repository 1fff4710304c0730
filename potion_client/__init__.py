from . import exceptions, fields, signals, log_subscriber
from .adapters import RequestsAdapter, WSGIAdapter, TestAdapter, Stubs, StubNotFound, stubs
from .formats import Format, JsonFormat, XmlFormat
from .middleware import Middleware, Builder
from .resource import Resource
from .scope import Scope, RequestScope
from .singleton import SingletonResource

__all__ = (
    'Resource',
    'SingletonResource',
    'Scope',
    'RequestScope',
    'Middleware',
    'Builder',
    'Format',
    'JsonFormat',
    'XmlFormat',
    'RequestsAdapter',
    'WSGIAdapter',
    'TestAdapter',
    'Stubs',
    'StubNotFound',
    'stubs',
    'exceptions',
    'fields',
    'signals',
)
