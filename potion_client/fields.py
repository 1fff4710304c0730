import copy
from datetime import date, datetime

import aniso8601
from werkzeug.utils import cached_property

from .reference import ResourceReference, ResourceBound


class Raw(object):
    """
    This is the base class for all field types, can be given any JSON-schema.

    Fields are declared in the ``Schema`` of a :class:`Resource` and become typed accessors on its items: reading
    converts the stored wire value into a Python value, assigning stores the value as given. Before an item is
    sent, declared values are formatted back into their wire representation.

    >>> f = fields.Raw({"type": "string"}, title="Name")
    >>> f.request
    {'type': 'string', 'title': 'Name'}

    :param schema: JSON-schema for field, or :class:`callable` resolving to a JSON-schema when called
    :param default: value read when the attribute is not set; may be a callable with no arguments
    :param attribute: key in the item attributes, defaults to the name of the field
    :param title: optional title for JSON schema
    :param description: optional description for JSON schema
    """

    def __init__(self, schema, default=None, attribute=None, title=None, description=None):
        self._schema = schema
        self._default = default
        self.attribute = attribute
        self.title = title
        self.description = description
        self.name = None

    @property
    def key(self):
        return self.attribute or self.name

    @property
    def default(self):
        if callable(self._default):
            return self._default()
        return self._default

    def schema(self):
        schema = self._schema
        if callable(schema):
            schema = schema()

        schema = dict(schema)
        for attr in ("title", "description"):
            value = getattr(self, attr)
            if value is not None:
                schema[attr] = value
        return schema

    @cached_property
    def request(self):
        """
        JSON-schema used to validate the formatted value.
        """
        return self.schema()

    def format(self, value):
        """
        Format a Python value for the wire. Noop by default.
        """
        if value is not None:
            return self.formatter(value)
        return value

    def convert(self, value):
        """
        Convert a wire value to a Python object. Noop by default.
        """
        if value is not None:
            return self.converter(value)
        return value

    def formatter(self, value):
        return value

    def converter(self, value):
        return value

    def __get__(self, item, owner):
        if item is None:
            return self

        value = item.get(self.key)
        if value is None:
            return self.default
        return self.convert(value)

    def __set__(self, item, value):
        item[self.key] = value

    def __repr__(self):
        return '{}(attribute={})'.format(self.__class__.__name__, repr(self.key))


class Any(Raw):
    """
    A field type that allows any value.
    """
    def __init__(self, **kwargs):
        super(Any, self).__init__({"type": ["null", "string", "number", "boolean", "object", "array"]}, **kwargs)


def _field_from_object(parent, cls_or_instance):
    if isinstance(cls_or_instance, type):
        container = cls_or_instance()
    else:
        container = cls_or_instance
    if not isinstance(container, Raw):
        raise RuntimeError('{} expected Raw, but got {}'.format(parent, container.__class__.__name__))
    return container


class Custom(Raw):
    """
    A field type that can be passed any schema and optional formatter/converter transformers. It is a very thin
    wrapper over :class:`Raw`.

    :param dict schema: JSON-schema
    :param callable converter: convert function
    :param callable formatter: format function
    """

    def __init__(self, schema, converter=None, formatter=None, **kwargs):
        super(Custom, self).__init__(schema, **kwargs)
        self._converter = converter
        self._formatter = formatter

    def formatter(self, value):
        if self._formatter is None:
            return value
        return self._formatter(value)

    def converter(self, value):
        if self._converter is None:
            return value
        return self._converter(value)


class Array(Raw, ResourceBound):
    """
    A field for an array of a given field type.

    :param Raw cls_or_instance: field class or instance
    :param int min_items: minimum number of items
    :param int max_items: maximum number of items
    :param bool unique: if ``True``, all values in the list must be unique
    """

    def __init__(self, cls_or_instance, min_items=None, max_items=None, unique=None, **kwargs):
        self.container = container = _field_from_object(self, cls_or_instance)

        schema_properties = [('type', 'array')]
        schema_properties += [(k, v) for k, v in [('minItems', min_items),
                                                  ('maxItems', max_items),
                                                  ('uniqueItems', unique)] if v is not None]

        super(Array, self).__init__(lambda: dict([('items', container.request)] + schema_properties), **kwargs)

    def bind(self, resource):
        if isinstance(self.container, ResourceBound):
            container = self.container.bind(resource)
            if container is not self.container:
                field = copy.copy(self)
                field.container = container
                return field
        return self

    def formatter(self, value):
        return [self.container.format(v) for v in value]

    def converter(self, value):
        return [self.container.convert(v) for v in value]


List = Array


class String(Raw):
    """
    :param int min_length: minimum length of string
    :param int max_length: maximum length of string
    :param str pattern: regex pattern that the string must match
    :param list enum: list of strings with enumeration
    """

    def __init__(self, min_length=None, max_length=None, pattern=None, enum=None, format=None, **kwargs):
        schema = {"type": "string"}

        if enum is not None:
            enum = list(enum)

        for v, k in ((min_length, 'minLength'),
                     (max_length, 'maxLength'),
                     (pattern, 'pattern'),
                     (enum, 'enum'),
                     (format, 'format')):
            if v is not None:
                schema[k] = v

        super(String, self).__init__(schema, **kwargs)


class Uri(String):
    def __init__(self, **kwargs):
        super(Uri, self).__init__(format="uri", **kwargs)


class Email(String):
    def __init__(self, **kwargs):
        super(Email, self).__init__(format="email", **kwargs)


class Date(Raw):
    """
    A field for ISO8601-formatted date strings. Converts to :class:`datetime.date`.
    """

    def __init__(self, **kwargs):
        super(Date, self).__init__({"type": "string", "format": "date"}, **kwargs)

    def formatter(self, value):
        if isinstance(value, date):
            return value.isoformat()
        return value

    def converter(self, value):
        if isinstance(value, date):
            return value
        return aniso8601.parse_date(value)


class DateTime(Raw):
    """
    A field for ISO8601-formatted date-time strings. Converts to :class:`datetime.datetime`.
    """

    def __init__(self, **kwargs):
        super(DateTime, self).__init__({"type": "string", "format": "date-time"}, **kwargs)

    def formatter(self, value):
        if isinstance(value, datetime):
            return value.isoformat()
        return value

    def converter(self, value):
        if isinstance(value, datetime):
            return value
        return aniso8601.parse_datetime(value)


class Boolean(Raw):
    def __init__(self, **kwargs):
        super(Boolean, self).__init__({"type": "boolean"}, **kwargs)

    def formatter(self, value):
        return self.converter(value)

    def converter(self, value):
        if isinstance(value, str):
            return value.strip().lower() in ('true', '1')
        return bool(value)


class Integer(Raw):

    def __init__(self, minimum=None, maximum=None, **kwargs):
        schema = {"type": "integer"}

        if minimum is not None:
            schema['minimum'] = minimum
        if maximum is not None:
            schema['maximum'] = maximum

        super(Integer, self).__init__(schema, **kwargs)

    def formatter(self, value):
        return int(value)

    def converter(self, value):
        return int(value)


class PositiveInteger(Integer):
    """
    A :class:`Integer` field that only accepts integers >=1.
    """

    def __init__(self, maximum=None, **kwargs):
        super(PositiveInteger, self).__init__(minimum=1, maximum=maximum, **kwargs)


class Number(Raw):
    def __init__(self,
                 minimum=None,
                 maximum=None,
                 exclusive_minimum=False,
                 exclusive_maximum=False,
                 **kwargs):

        schema = {"type": "number"}

        if minimum is not None:
            schema['minimum'] = minimum
            if exclusive_minimum:
                schema['exclusiveMinimum'] = True

        if maximum is not None:
            schema['maximum'] = maximum
            if exclusive_maximum:
                schema['exclusiveMaximum'] = True

        super(Number, self).__init__(schema, **kwargs)

    def formatter(self, value):
        return float(value)

    def converter(self, value):
        return float(value)


class ToOne(Raw, ResourceBound):
    """
    Declares the resource type of a nested item.

    Resource references can be one of the following:

    - :class:`Resource` class
    - a string with the name of a resource class nested in, or declared next to, the bound resource
    - a string with a module name and class name of a resource
    - ``"self"`` --- which resolves to the resource this field is bound to

    :param resource: a resource reference
    """

    def __init__(self, resource, **kwargs):
        self.target_reference = ResourceReference(resource)
        super(ToOne, self).__init__({"type": "object"}, **kwargs)

    def rebind(self, resource):
        if self.target_reference.value == 'self':
            field = self.__class__(
                'self',
                default=self._default,
                attribute=self.attribute,
                title=self.title,
                description=self.description
            ).bind(resource)
            field.name = self.name
            return field
        return self

    @cached_property
    def target(self):
        return self.target_reference.resolve(self.resource)


class ToMany(Array):
    """
    Like :class:`ToOne`, but for arrays of nested items.
    """
    def __init__(self, resource, **kwargs):
        super(ToMany, self).__init__(ToOne(resource), **kwargs)

    @property
    def target(self):
        return self.container.target
