from potion_client import Resource, SingletonResource, Scope, fields
from potion_client.middleware import Middleware

SITE = 'http://37s.sunrise.i:3000'


class TokenAuth(Middleware):

    def __init__(self, app, token):
        super(TokenAuth, self).__init__(app)
        self.token = token

    def __call__(self, request):
        request.headers['Authorization'] = 'Token {}'.format(self.token)
        return self.app(request)


class Tag(Middleware):

    def __init__(self, app, tag):
        super(Tag, self).__init__(app)
        self.tag = tag

    def __call__(self, request):
        request.headers['X-Tag'] = self.tag
        return self.app(request)


class Person(Resource):
    class Meta:
        site = SITE

    class Schema:
        name = fields.String()
        best_friend = fields.ToOne('self')

    auth = Scope(lambda builder, token: builder.insert(0, TokenAuth, token))
    tagged = Scope(lambda builder, tag: builder.use(Tag, tag))
    noop = Scope(lambda builder: None)


class StreetAddress(Resource):
    class Meta:
        site = SITE
        prefix = '/people/:person_id/'
        element_name = 'address'


class Customer(Resource):
    class Meta:
        site = SITE

    class Address(Resource):
        class Meta:
            site = SITE


class Weather(SingletonResource):
    class Meta:
        site = SITE


class WeatherDashboard(SingletonResource):
    class Meta:
        site = SITE
        singleton_name = 'dashboard'


class Inventory(SingletonResource):
    class Meta:
        site = SITE
        prefix = '/products/:product_id/'
