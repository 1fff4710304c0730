import copy
import logging
import re
from collections.abc import Mapping

import inflection

from . import signals
from .adapters import RequestsAdapter, TestAdapter, stubs as default_stubs
from .config import ResourceConfig
from .connection import Connection
from .custom import custom_methods
from .exceptions import ResourceNotFound, ResourceGone, ResourceInvalid, UnknownAttribute
from .formats import JsonFormat, XmlFormat
from .middleware import Builder, RemoveRoot, BasicAuth, DigestAuth, RaiseError, Logger
from .prefix import query_string
from .reference import create_nested_resource, resolve_nested
from .schema import FieldSet
from .scope import scoped_connection
from .utils import escape, hybridmethod

logger = logging.getLogger(__name__)

LOCATION_ID = re.compile(r'/([^/]*?)(\.\w+)?$')


def _config_property(key, doc=None):
    def fget(cls):
        return cls._config.get(key)

    def fset(cls, value):
        cls._config.set(key, value)

    return property(fget, fset, doc=doc)


class ResourceMeta(type):
    """
    Collects ``class Meta:`` into a :class:`config.ResourceConfig` chained to the configuration of the parent
    class, and ``class Schema:`` into a :class:`schema.FieldSet` whose fields become typed accessors.

    Configuration can be read and changed at runtime through class properties, e.g. ``Person.site = '...'``.
    """

    def __new__(mcs, name, bases, members):
        class_ = super(ResourceMeta, mcs).__new__(mcs, name, bases, members)

        parent = next((base._config for base in bases if isinstance(base, ResourceMeta)), None)

        meta = {}
        if 'Meta' in members:
            meta = {k: v for k, v in members['Meta'].__dict__.items() if not k.startswith('__')}

        class_._config = config = ResourceConfig(parent, **meta)
        class_._connection = None
        class_._connection_fingerprint = None
        class_.nested_types = {}

        fields = {}
        for base in reversed(bases):
            if isinstance(base, ResourceMeta):
                fields.update(base.schema.fields)

        if 'Schema' in members:
            fields.update({k: f for k, f in members['Schema'].__dict__.items() if not k.startswith('__')})

        class_.schema = fs = FieldSet(fields, required_fields=config.get('required_fields')).bind(class_)
        for key, field in fs.fields.items():
            setattr(class_, key, field)

        return class_

    site = _config_property('site', 'Base URI of the remote service')
    proxy = _config_property('proxy')
    user = _config_property('user')
    password = _config_property('password')
    auth_type = _config_property('auth_type', "``'basic'`` or ``'digest'``")
    timeout = _config_property('timeout')
    ssl_options = _config_property('ssl_options')
    format = _config_property('format', 'The :class:`formats.Format` in use')
    adapter = _config_property('adapter', "``'requests'``, ``'test'`` or an adapter instance")
    stubs = _config_property('stubs')
    headers = _config_property('headers')
    primary_key = _config_property('primary_key')

    @property
    def element_name(cls):
        return cls._config.get('element_name') or inflection.underscore(cls.__name__)

    @element_name.setter
    def element_name(cls, value):
        cls._config.set('element_name', value)

    @property
    def collection_name(cls):
        return cls._config.get('collection_name') or inflection.pluralize(cls.element_name)

    @collection_name.setter
    def collection_name(cls, value):
        cls._config.set('collection_name', value)

    @property
    def singleton_name(cls):
        return cls._config.get('singleton_name') or cls.element_name

    @singleton_name.setter
    def singleton_name(cls, value):
        cls._config.set('singleton_name', value)


def id_from_response(response):
    """
    Extracts the id of a created item from the last segment of the ``Location`` header. Ids consisting of digits
    are returned as :class:`int`.
    """
    location = response.headers.get('Location')
    if not location:
        return None

    match = LOCATION_ID.search(location)
    if match is None:
        return None

    id = match.group(1)
    if id.isdigit() and str(int(id)) == id:
        return int(id)
    return id


class Resource(object, metaclass=ResourceMeta):
    """
    A resource on a remote REST service. Subclasses map to a collection of items:

    .. code-block:: python

        class Person(Resource):
            class Meta:
                site = 'http://api.example.com'

            class Schema:
                name = fields.String()

        Person.find(1)                  # GET http://api.example.com/people/1.json
        Person.create(name='Matz')      # POST http://api.example.com/people.json

    Items keep their data in :attr:`attributes`. Declared fields are available as typed attributes; everything
    else is accessed with ``item['name']``, :meth:`get` and :meth:`set`.

    :param dict attributes: initial attributes
    :param bool persisted: whether the item exists on the remote service
    """

    class Meta:
        site = None
        auth_type = 'basic'
        format = JsonFormat
        adapter = 'requests'
        stubs = default_stubs
        primary_key = 'id'
        required_fields = ()
        nested_factory = create_nested_resource

    custom = custom_methods()

    def __init__(self, attributes=None, persisted=False, **kwargs):
        self.attributes = {}
        self.prefix_options = {}
        self.persisted = persisted
        self.errors = []

        attributes = dict(attributes or {})
        attributes.update(kwargs)
        self.load(attributes)

    # Paths

    @classmethod
    def prefix_source(cls):
        return cls._config.prefix().source

    @classmethod
    def prefix(cls, options=None):
        """
        :param dict options: values for the placeholders in the prefix
        :return: the prefix with placeholders substituted
        """
        return cls._config.prefix()(options)

    @classmethod
    def set_prefix(cls, value):
        cls._config.set('prefix', value)

    @classmethod
    def prefix_parameters(cls):
        return cls._config.prefix().parameters

    @classmethod
    def split_options(cls, options):
        return cls._config.prefix().split(options)

    @classmethod
    def check_prefix_options(cls, options):
        cls._config.prefix().check(options)

    @classmethod
    def _path_options(cls, prefix_options, query_options):
        if query_options is None:
            return cls.split_options(prefix_options)
        return prefix_options or {}, query_options

    @hybridmethod
    def element_path(self, options=None):
        return type(self).element_path(self.id, options or self.prefix_options)

    @element_path.classmethod
    def element_path(cls, id, prefix_options=None, query_options=None):
        """
        ``/people/1.json``

        :param id: the id of the item
        :param dict prefix_options: values for the prefix placeholders; other keys become query parameters when
            ``query_options`` is ``None``
        :param dict query_options: query parameters
        :raises MissingPrefixParam: if a prefix placeholder has no value
        """
        prefix_options, query_options = cls._path_options(prefix_options, query_options)
        cls.check_prefix_options(prefix_options)
        return '{}{}/{}.{}{}'.format(cls.prefix(prefix_options),
                                     cls.collection_name,
                                     escape(id),
                                     cls.format.extension(),
                                     query_string(query_options))

    @hybridmethod
    def new_element_path(self):
        return type(self).new_element_path(self.prefix_options)

    @new_element_path.classmethod
    def new_element_path(cls, prefix_options=None):
        cls.check_prefix_options(prefix_options)
        return '{}{}/new.{}'.format(cls.prefix(prefix_options), cls.collection_name, cls.format.extension())

    @hybridmethod
    def collection_path(self, options=None):
        return type(self).collection_path(options or self.prefix_options)

    @collection_path.classmethod
    def collection_path(cls, prefix_options=None, query_options=None):
        prefix_options, query_options = cls._path_options(prefix_options, query_options)
        cls.check_prefix_options(prefix_options)
        return '{}{}.{}{}'.format(cls.prefix(prefix_options),
                                  cls.collection_name,
                                  cls.format.extension(),
                                  query_string(query_options))

    # Connection

    @classmethod
    def _build_adapter(cls):
        adapter = cls.adapter
        if adapter == 'requests':
            return RequestsAdapter(timeout=cls.timeout, proxy=cls.proxy, ssl_options=cls.ssl_options)
        if adapter == 'test':
            return TestAdapter(cls.stubs)
        if isinstance(adapter, str):
            raise ValueError('Unknown adapter: {}'.format(repr(adapter)))
        return adapter

    @classmethod
    def _build_middleware(cls):
        builder = Builder().use(RemoveRoot)

        user, password = cls.user, cls.password
        if user or password:
            auth = DigestAuth if cls.auth_type == 'digest' else BasicAuth
            builder = builder.use(auth, user, password)

        builder = builder.use(RaiseError).use(cls.format).use(Logger)
        return builder.with_adapter(cls._build_adapter())

    @classmethod
    def connection(cls, refresh=False):
        """
        Returns the connection of this class, rebuilt when the configuration has changed since it was created or
        when ``refresh`` is ``True``. Within a :class:`scope.RequestScope`, returns the private connection of the
        scope instead.
        """
        connection = scoped_connection(cls)
        if connection is not None:
            return connection

        fingerprint = cls._config.fingerprint()
        if refresh or cls._connection is None or cls._connection_fingerprint != fingerprint:
            if cls.site is None:
                raise ValueError('{} has no site configured'.format(cls.__name__))

            logger.debug('Building connection for %s', cls.__name__)
            cls._connection = Connection(cls.site, cls._build_middleware(), cls.headers)
            cls._connection_fingerprint = fingerprint
        return cls._connection

    @classmethod
    def middleware(cls):
        """
        :return: the :class:`middleware.Builder` of the current connection
        """
        return cls.connection().builder

    @classmethod
    def set_adapter(cls, adapter, stubs=None):
        cls.adapter = adapter
        if stubs is not None:
            cls.stubs = stubs

    # Class-level operations

    @classmethod
    def find(cls, scope, params=None, from_=None):
        """
        Retrieves items:

        - ``find(1)`` --- the item with id 1
        - ``find('all')`` --- a list of items; empty if the collection does not exist
        - ``find('first')``, ``find('last')`` --- the first and last item of the list, or ``None``
        - ``find('one', from_='/companies/1/manager.json')`` --- a single item from a custom path

        :param scope: ``'all'``, ``'first'``, ``'last'``, ``'one'`` or an id
        :param dict params: prefix options and query parameters
        :param str from_: a path starting with ``/``, or the name of a custom method on the collection
        :raises ResourceNotFound: when an item requested by id does not exist
        """
        if scope == 'all':
            return cls._find_every(params, from_)
        if scope == 'first':
            items = cls._find_every(params, from_)
            return items[0] if items else None
        if scope == 'last':
            items = cls._find_every(params, from_)
            return items[-1] if items else None
        if scope == 'one':
            return cls._find_one(params, from_)
        return cls._find_single(scope, params)

    @classmethod
    def all(cls, params=None, from_=None):
        return cls.find('all', params, from_)

    @classmethod
    def first(cls, params=None, from_=None):
        return cls.find('first', params, from_)

    @classmethod
    def last(cls, params=None, from_=None):
        return cls.find('last', params, from_)

    @classmethod
    def find_one(cls, params=None, from_=None):
        return cls.find('one', params, from_)

    @classmethod
    def _find_every(cls, params, from_):
        params = params or {}
        prefix_options, query_options = cls.split_options(params)

        try:
            if from_ is None:
                body = cls.connection().get(cls.collection_path(prefix_options, query_options)).body
            elif from_.startswith('/'):
                prefix_options = {}
                body = cls.connection().get(from_ + query_string(params)).body
            else:
                body = cls.custom.get(from_, **params)
        except ResourceNotFound:
            return []

        return cls._instantiate_collection(body, prefix_options)

    @classmethod
    def _find_one(cls, params, from_):
        if from_ is None:
            raise ValueError("find('one') requires from_")

        params = params or {}
        if from_.startswith('/'):
            body = cls.connection().get(from_ + query_string(params)).body
        else:
            body = cls.custom.get(from_, **params)

        if body is None:
            return None
        return cls._instantiate_record(body)

    @classmethod
    def _find_single(cls, id, params):
        prefix_options, query_options = cls.split_options(params or {})
        path = cls.element_path(id, prefix_options, query_options)
        return cls._instantiate_record(cls.connection().get(path).body, prefix_options)

    @classmethod
    def _instantiate_collection(cls, body, prefix_options=None):
        if body is None:
            return []
        if isinstance(body, Mapping):
            body = [body]
        return [cls._instantiate_record(record, prefix_options) for record in body]

    @classmethod
    def _instantiate_record(cls, record, prefix_options=None):
        item = cls(record, persisted=True)
        item.prefix_options.update(prefix_options or {})
        return item

    @classmethod
    def create(cls, attributes=None, **kwargs):
        """
        Creates a new item and saves it. Check :attr:`persisted` or :attr:`errors` to see whether the item was
        valid.
        """
        item = cls(attributes, **kwargs)
        item.save()
        return item

    @classmethod
    def build(cls, attributes=None, **kwargs):
        """
        Builds a new item from the defaults returned by ``GET /people/new.json`` updated with ``attributes``. The
        item is not saved.
        """
        attributes = dict(attributes or {})
        attributes.update(kwargs)

        defaults = cls.connection().get(cls.new_element_path(attributes)).body
        defaults = dict(defaults) if isinstance(defaults, Mapping) else {}
        defaults.update(attributes)
        return cls(defaults)

    @classmethod
    def delete(cls, id, **options):
        """
        Deletes the item with the given id without retrieving it first.

        :param options: prefix options and query parameters
        """
        return cls.connection().delete(cls.element_path(id, options))

    @hybridmethod
    def exists(self):
        if self.new_record:
            return False
        return type(self).exists(self.id, self.prefix_options)

    @exists.classmethod
    def exists(cls, id, params=None):
        """
        Checks with a ``HEAD`` request whether the item with the given id exists.
        """
        if id is None:
            return False

        prefix_options, query_options = cls.split_options(params or {})
        path = cls.element_path(id, prefix_options, query_options)
        try:
            return cls.connection().head(path).status == 200
        except (ResourceNotFound, ResourceGone):
            return False

    # Attributes

    @property
    def id(self):
        return self.attributes.get(self.__class__.primary_key)

    @id.setter
    def id(self, value):
        self.attributes[self.__class__.primary_key] = value

    @property
    def new_record(self):
        return not self.persisted

    @property
    def known_attributes(self):
        known = [field.key for field in self.__class__.schema.fields.values()]
        return known + [key for key in self.attributes if key not in known]

    def __getitem__(self, name):
        try:
            return self.attributes[name]
        except KeyError:
            if name in self.known_attributes:
                return None
            raise UnknownAttribute(self, name)

    def __setitem__(self, name, value):
        self.attributes[str(name)] = value

    def __delitem__(self, name):
        del self.attributes[name]

    def __contains__(self, name):
        return name in self.attributes

    def get(self, name, default=None):
        return self.attributes.get(name, default)

    def set(self, name, value):
        self[name] = value

    def query_attribute(self, name):
        """
        Returns whether the attribute ``name`` is set to a value that is not blank.
        """
        value = self.attributes.get(name)
        if isinstance(value, str):
            return bool(value.strip())
        return bool(value)

    def load(self, attributes, remove_root=False):
        """
        Loads ``attributes`` into this item. Values for the prefix placeholders go to :attr:`prefix_options`. A
        single key equal to :attr:`element_name` is treated as a wrapping root and removed, as is any single key when
        ``remove_root`` is ``True``. Nested mappings, and lists of mappings, are turned into items of the resource
        resolved for their key.

        :param dict attributes:
        :param bool remove_root:
        :raises TypeError: if ``attributes`` is not a mapping
        :return: this item
        """
        if not isinstance(attributes, Mapping):
            raise TypeError('expected an attributes mapping, got {}'.format(repr(attributes)))

        cls = self.__class__
        prefix_options, attributes = cls.split_options(attributes)
        self.prefix_options.update(prefix_options)

        if len(attributes) == 1 and not remove_root:
            remove_root = next(iter(attributes)) == cls.element_name

        if remove_root and len(attributes) == 1:
            attributes = next(iter(attributes.values()))
            if not isinstance(attributes, Mapping):
                raise TypeError('expected an attributes mapping, got {}'.format(repr(attributes)))

        for key, value in attributes.items():
            key = str(key)
            if isinstance(value, (list, tuple)):
                self.attributes[key] = [self._load_value(key, v, many=True) for v in value]
            else:
                self.attributes[key] = self._load_value(key, value)
        return self

    def _load_value(self, key, value, many=False):
        if isinstance(value, Resource):
            return value
        if isinstance(value, Mapping):
            resource = resolve_nested(self.__class__, key, many)
            return resource(value, persisted=self.persisted)
        return copy.deepcopy(value)

    def update_attribute(self, name, value):
        """
        Sets a single attribute and saves the item.
        """
        self[name] = value
        return self.save()

    def update_attributes(self, attributes):
        """
        Loads ``attributes`` and saves the item. The whole item is sent, not just the updated attributes.
        """
        self.load(attributes)
        return self.save()

    def clone(self):
        """
        Returns a new item with a copy of the attributes, except the primary key and nested items.
        """
        cls = self.__class__
        item = cls()
        item.prefix_options = dict(self.prefix_options)
        item.attributes = {key: copy.deepcopy(value)
                           for key, value in self.attributes.items()
                           if key != cls.primary_key and not isinstance(value, Resource)}
        return item

    # Serialization

    def _serializable(self):
        def serialize(value):
            if isinstance(value, Resource):
                return value.to_dict()
            if isinstance(value, (list, tuple)):
                return [serialize(v) for v in value]
            if isinstance(value, Mapping):
                return {k: serialize(v) for k, v in value.items()}
            return value

        return {key: serialize(value) for key, value in self.attributes.items()}

    def to_dict(self):
        """
        :return: the attributes, with nested items and declared fields in their wire representation
        """
        return self.__class__.schema.format(self._serializable())

    def encode(self):
        """
        Encodes the item in the format of its class, wrapped in :attr:`element_name`.
        """
        cls = self.__class__
        return cls.format.encode(self.to_dict(), root=cls.element_name)

    def to_json(self):
        return JsonFormat.encode(self.to_dict(), root=self.__class__.element_name)

    def to_xml(self):
        return XmlFormat.encode(self.to_dict(), root=self.__class__.element_name)

    # Persistence

    def valid(self):
        """
        Validates the item against the declared schema and the required fields; errors are kept in :attr:`errors`.
        """
        self.errors = self.__class__.schema.validate(self._serializable())
        return not self.errors

    def save(self):
        """
        Creates the item with a ``POST`` to the collection when it is new, otherwise updates it with a ``PUT``.

        :return: ``False`` if the item is invalid, in which case nothing is sent; ``True`` otherwise
        """
        if not self.valid():
            logger.debug('Not saving invalid %s: %s', self.__class__.__name__, self.errors)
            return False

        cls = self.__class__
        signals.before_save.send(cls, item=self)

        if self.new_record:
            signals.before_create.send(cls, item=self)
            self._create()
            signals.after_create.send(cls, item=self)
        else:
            signals.before_update.send(cls, item=self)
            self._update()
            signals.after_update.send(cls, item=self)

        signals.after_save.send(cls, item=self)
        return True

    def save_or_raise(self):
        """
        Like :meth:`save`, but raises :class:`ResourceInvalid` when the item is invalid.
        """
        if not self.save():
            raise ResourceInvalid(errors=self.errors)
        return True

    def _create(self):
        response = self.connection().post(self.collection_path(), self.encode())
        id = id_from_response(response)
        if id is not None:
            self.id = id
        self.persisted = True
        self._load_attributes_from_response(response)
        return response

    def _update(self):
        response = self.connection().put(self.element_path(), self.encode())
        self._load_attributes_from_response(response)
        return response

    def _load_attributes_from_response(self, response):
        if (response.allows_body and
                response.headers.get('Content-Length') != '0' and
                isinstance(response.body, Mapping) and
                response.body):
            self.load(response.body)
            self.persisted = True

    def destroy(self):
        """
        Deletes the item on the remote service. The item itself is left unchanged.
        """
        cls = self.__class__
        signals.before_destroy.send(cls, item=self)
        response = self.connection().delete(self.element_path())
        signals.after_destroy.send(cls, item=self)
        return response

    def reload(self):
        """
        Replaces the attributes with those of a fresh copy from the remote service.
        """
        prefix_options = dict(self.prefix_options)
        found = self.__class__.find(self.id, params=prefix_options)
        self.load(found.attributes)
        self.prefix_options = prefix_options
        return self

    def __eq__(self, other):
        if self is other:
            return True
        return (type(other) is type(self) and
                self.persisted and other.persisted and
                self.id == other.id and
                self.prefix_options == other.prefix_options)

    def __ne__(self, other):
        return not self == other

    def __hash__(self):
        return hash((self.__class__, self.id))

    def __repr__(self):
        return '<{} {}>'.format(self.__class__.__name__, repr(self.attributes))
