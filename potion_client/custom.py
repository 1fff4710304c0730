"""
Requests to actions outside the standard CRUD routes of a resource.

.. code-block:: python

    Person.custom.get('active')                  # GET /people/active.json
    Person.custom.get('retrieve', name='David')  # GET /people/retrieve.json?name=David
    person.custom.put('promote', position='Manager')  # PUT /people/1/promote.json?position=Manager
    Person(name='Ryan').custom.post('register')  # POST /people/new/register.json

``get`` returns the decoded response body; the other verbs return the :class:`connection.Response`.
"""
from .prefix import query_string
from .utils import escape


class CustomMethods(object):
    """
    :param resource: the resource class
    :param item: an item of ``resource``, or ``None`` for requests on the collection
    """

    def __init__(self, resource, item=None):
        self.resource = resource
        self.item = item

    def url(self, custom_method_name, params=None):
        resource = self.resource
        extension = resource.format.extension()

        if self.item is None:
            prefix_options, query_options = resource.split_options(params or {})
            return '{}{}/{}.{}{}'.format(resource.prefix(prefix_options),
                                         resource.collection_name,
                                         custom_method_name,
                                         extension,
                                         query_string(query_options))

        item = self.item
        if item.new_record:
            element = 'new'
        else:
            element = escape(item.id)

        return '{}{}/{}/{}.{}{}'.format(resource.prefix(item.prefix_options),
                                        resource.collection_name,
                                        element,
                                        custom_method_name,
                                        extension,
                                        query_string(params))

    def get(self, custom_method_name, **params):
        return self.resource.connection().get(self.url(custom_method_name, params)).body

    def head(self, custom_method_name, **params):
        return self.resource.connection().head(self.url(custom_method_name, params))

    def delete(self, custom_method_name, **params):
        return self.resource.connection().delete(self.url(custom_method_name, params))

    def _body(self, body):
        if body is None and self.item is not None:
            return self.item.encode()
        return body

    def post(self, custom_method_name, body=None, **params):
        return self.resource.connection().post(self.url(custom_method_name, params), self._body(body))

    def put(self, custom_method_name, body=None, **params):
        return self.resource.connection().put(self.url(custom_method_name, params), body)

    def patch(self, custom_method_name, body=None, **params):
        return self.resource.connection().patch(self.url(custom_method_name, params), body)

    def __repr__(self):
        return '<CustomMethods {}>'.format(self.item if self.item is not None else self.resource.__name__)


class custom_methods(object):
    """
    Exposes :class:`CustomMethods` for the resource class and for each item.
    """

    def __get__(self, item, owner):
        return CustomMethods(owner, item)
