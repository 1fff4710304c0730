from .exceptions import ResourceNotFound, ResourceGone
from .prefix import query_string
from .resource import Resource
from .utils import hybridmethod


class SingletonResource(Resource):
    """
    A resource with exactly one item per prefix, addressed without an id:

    .. code-block:: python

        class Weather(SingletonResource):
            class Meta:
                site = 'http://api.example.com'

        Weather.find()                              # GET /weather.json
        Weather.find({'degrees': 'fahrenheit'})     # GET /weather.json?degrees=fahrenheit

    The path segment is :attr:`singleton_name`, which defaults to the element name.
    """

    @classmethod
    def singleton_path(cls, prefix_options=None, query_options=None):
        prefix_options, query_options = cls._path_options(prefix_options, query_options)
        cls.check_prefix_options(prefix_options)
        return '{}{}.{}{}'.format(cls.prefix(prefix_options),
                                  cls.singleton_name,
                                  cls.format.extension(),
                                  query_string(query_options))

    @classmethod
    def find(cls, params=None):
        """
        :param dict params: prefix options and query parameters
        :raises ResourceNotFound: if there is no item
        """
        prefix_options, query_options = cls.split_options(params or {})
        path = cls.singleton_path(prefix_options, query_options)
        return cls._instantiate_record(cls.connection().get(path).body, prefix_options)

    @classmethod
    def _no_collection(cls, *args, **kwargs):
        raise TypeError('{} is a singleton and has no collection; use find()'.format(cls.__name__))

    all = first = last = find_one = _no_collection

    @hybridmethod
    def exists(self):
        if self.new_record:
            return False
        return type(self).exists(self.prefix_options)

    @exists.classmethod
    def exists(cls, params=None):
        try:
            return cls.connection().head(cls.singleton_path(params or {})).status == 200
        except (ResourceNotFound, ResourceGone):
            return False

    def element_path(self, options=None):
        return self.__class__.singleton_path(options or self.prefix_options)

    collection_path = element_path

    def reload(self):
        prefix_options = dict(self.prefix_options)
        found = self.__class__.find(prefix_options)
        self.load(found.attributes)
        self.prefix_options = prefix_options
        return self

    def _create(self):
        response = self.connection().post(self.element_path(), self.encode())
        self.persisted = True
        self._load_attributes_from_response(response)
        return response
