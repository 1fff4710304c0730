from importlib import import_module
import inspect
import sys

import inflection


def _is_resource(value):
    from .resource import Resource
    return inspect.isclass(value) and issubclass(value, Resource)


class ResourceReference(object):
    def __init__(self, value):
        self.value = value

    def resolve(self, binding=None):
        """
        Attempt to resolve the reference value and return the matching :class:`Resource`.

        The value may be ``"self"``, a :class:`Resource` class, a ``"module.ClassName"`` path, or the name of a
        class that is nested in, or declared alongside, the bound resource.
        """
        name = self.value

        if name == 'self':
            return binding

        if _is_resource(name):
            return name

        if isinstance(name, str):
            if '.' in name:
                module_name, class_name = name.rsplit('.', 1)
                return getattr(import_module(module_name), class_name)

            if binding is not None:
                resource = find_resource_class(binding, name)
                if resource is not None:
                    return resource

        raise RuntimeError('Resource named "{}" cannot be found.'.format(name))

    def __repr__(self):
        return "<ResourceReference '{}'>".format(self.value)


class ResourceBound(object):
    resource = None

    def _on_bind(self, resource):
        pass

    def bind(self, resource):
        if self.resource is None:
            self.resource = resource
            self._on_bind(resource)
        elif self.resource != resource:
            return self.rebind(resource)
        return self

    def rebind(self, resource):
        raise NotImplementedError('{} is already bound to {}'
                                  ' and does not support rebinding to {}'.format(repr(self), self.resource, resource))


def enclosing_namespaces(resource):
    """
    Yields the classes a resource class is nested in, innermost first, followed by its module. Classes defined
    inside a function body can only see their module.
    """
    module = sys.modules.get(resource.__module__)
    if module is None:
        return

    namespaces = [module]
    path = resource.__qualname__.split('.')[:-1]
    if '<locals>' not in path:
        for name in path:
            namespace = getattr(namespaces[-1], name, None)
            if namespace is None:
                break
            namespaces.append(namespace)

    for namespace in reversed(namespaces):
        yield namespace


def find_resource_class(owner, class_name):
    """
    Looks up a :class:`Resource` class named ``class_name``: first as an attribute of ``owner``, then in the
    namespaces enclosing ``owner``.

    :return: the class, or ``None``
    """
    resource = getattr(owner, class_name, None)
    if _is_resource(resource):
        return resource

    for namespace in enclosing_namespaces(owner):
        resource = getattr(namespace, class_name, None)
        if _is_resource(resource):
            return resource
    return None


def create_nested_resource(owner, class_name):
    """
    Default ``nested_factory``: defines a new resource class named ``class_name`` that shares the site, prefix and
    format of ``owner``, and attaches it to ``owner``.
    """
    from .resource import Resource

    meta = type('Meta', (object,), {
        'site': owner.site,
        'prefix': owner.prefix_source(),
        'format': owner.format,
    })

    resource = type(owner)(class_name, (Resource,), {
        'Meta': meta,
        '__module__': owner.__module__,
        '__qualname__': '{}.{}'.format(owner.__qualname__, class_name)
    })
    setattr(owner, class_name, resource)
    return resource


def resolve_nested(owner, key, many=False):
    """
    Returns the resource class for nested values stored under ``key`` in an item of ``owner``.

    Resolution order: a :class:`fields.ToOne` or :class:`fields.ToMany` field declared for ``key``; a resource
    class named after ``key`` (singular when ``many``) that is an attribute of ``owner`` or lives in its enclosing
    namespaces; and finally the ``nested_factory`` of ``owner``. The result is remembered in
    ``owner.nested_types``.
    """
    try:
        return owner.nested_types[(key, many)]
    except KeyError:
        pass

    field = owner.schema.fields.get(key)
    resource = getattr(field, 'target', None)

    if resource is None:
        class_name = inflection.camelize(inflection.singularize(key) if many else key)
        resource = find_resource_class(owner, class_name)
        if resource is None:
            resource = owner._config.get('nested_factory')(owner, class_name)

    owner.nested_types[(key, many)] = resource
    return resource
