from functools import wraps
from urllib.parse import quote

# Characters left unescaped in path segments; matches the reserved and
# unreserved sets of RFC 2396.
_PATH_SAFE = "-_.!~*'();/?:@&=+$,[]"


def escape(value):
    if value is None:
        return ''
    return quote(str(value), safe=_PATH_SAFE)


def blank(value):
    return value is None or (hasattr(value, '__len__') and len(value) == 0)


def unpack(value):
    """Return a three tuple of status, headers, and body"""
    if not isinstance(value, tuple):
        return 200, {}, value

    try:
        status, headers, body = value
        return status, headers, body
    except ValueError:
        pass

    try:
        status, body = value
        return status, {}, body
    except ValueError:
        pass

    return 200, {}, value


class hybridmethod(object):
    """
    A method that can be called on both the class and its instances, dispatching to a separate implementation
    for each:

    .. code-block:: python

        class Person(Resource):
            @hybridmethod
            def exists(self):
                ...

            @exists.classmethod
            def exists(cls, id):
                ...
    """

    def __init__(self, instance_func, class_func=None):
        self.instance_func = instance_func
        self.class_func = class_func

    def classmethod(self, class_func):
        return self.__class__(self.instance_func, class_func)

    def __get__(self, obj, owner):
        if obj is None:
            func, target = self.class_func, owner
        else:
            func, target = self.instance_func, obj

        @wraps(func)
        def bound(*args, **kwargs):
            return func(target, *args, **kwargs)

        return bound


def remove_root(data):
    """
    Drops the single wrapping key a server may put around a representation, e.g. ``{"person": {...}}``.
    Anything that is not a mapping with exactly one key is returned unchanged.
    """
    if isinstance(data, dict) and len(data) == 1:
        return next(iter(data.values()))
    return data
