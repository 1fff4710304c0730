from unittest import TestCase

from potion_client import Resource
from potion_client.exceptions import MissingPrefixParam
from potion_client.prefix import Prefix, to_query, query_string
from tests.fixtures import Person, StreetAddress, SITE


class PrefixTestCase(TestCase):

    def test_parameters(self):
        self.assertEqual(frozenset(), Prefix('/').parameters)
        self.assertEqual({'person_id'}, Prefix('/people/:person_id/').parameters)
        self.assertEqual({'a', 'b'}, Prefix('/x/:a/y/:b/').parameters)

    def test_substitute(self):
        prefix = Prefix('/people/:person_id/things/:thing_id/')
        self.assertEqual('/people/1/things/abc/', prefix({'person_id': 1, 'thing_id': 'abc'}))
        self.assertEqual('/people/1/things/2/', prefix({'person_id': 1, 'thing_id': 2, 'extra': 3}))

    def test_substitute_escapes_values(self):
        prefix = Prefix('/people/:person_id/')
        self.assertEqual('/people/Jane%20Doe/', prefix({'person_id': 'Jane Doe'}))

    def test_substitute_missing_key(self):
        with self.assertRaises(MissingPrefixParam) as cx:
            Prefix('/people/:person_id/')({})
        self.assertEqual('person_id prefix_option is missing', str(cx.exception))

    def test_check(self):
        prefix = Prefix('/people/:person_id/')
        prefix.check({'person_id': 1})

        for options in ({}, {'person_id': None}, {'person_id': ''}):
            with self.assertRaises(MissingPrefixParam):
                prefix.check(options)

    def test_split(self):
        prefix = Prefix('/people/:person_id/')
        self.assertEqual(({'person_id': 1}, {'active': True}), prefix.split({'person_id': 1, 'active': True}))
        self.assertEqual(({}, {'name': 'x'}), prefix.split({'name': 'x', 1: 'dropped', '': 'dropped'}))
        self.assertEqual(({}, {}), prefix.split(None))

    def test_from_site(self):
        self.assertEqual('/', Prefix.from_site('').source)
        self.assertEqual('/api/v1/', Prefix.from_site('/api/v1').source)
        self.assertEqual('/api/v1/', Prefix.from_site('/api/v1/').source)

    def test_equality(self):
        self.assertEqual(Prefix('/a/'), Prefix('/a/'))
        self.assertNotEqual(Prefix('/a/'), Prefix('/b/'))


class QueryTestCase(TestCase):

    def test_to_query(self):
        self.assertEqual('degrees=fahrenheit', to_query({'degrees': 'fahrenheit'}))
        self.assertEqual('degrees=false', to_query({'degrees': False}))
        self.assertEqual('degrees=', to_query({'degrees': None}))
        self.assertEqual('degrees=fahrenheit&lunar=true', to_query({'lunar': True, 'degrees': 'fahrenheit'}))

    def test_to_query_list(self):
        self.assertEqual('days%5B%5D=monday&days%5B%5D=saturday+and+sunday&days%5B%5D=&days%5B%5D=false',
                         to_query({'days': ['monday', 'saturday and sunday', None, False]}))

    def test_to_query_nested_mapping(self):
        self.assertEqual('where%5Bage%5D=3&where%5Bname%5D=Bob',
                         to_query({'where': {'name': 'Bob', 'age': 3}}))

    def test_query_string(self):
        self.assertEqual('', query_string({}))
        self.assertEqual('', query_string(None))
        self.assertEqual('?a=1', query_string({'a': 1}))


class ResourcePathTestCase(TestCase):

    def test_element_path(self):
        self.assertEqual('/people/1.json', Person.element_path(1))
        self.assertEqual('/people/1.json?active=true', Person.element_path(1, {'active': True}))
        self.assertEqual('/people/1.json?active=true', Person.element_path(1, {}, {'active': True}))

    def test_element_path_escapes_id(self):
        self.assertEqual('/people/a%20b.json', Person.element_path('a b'))

    def test_element_path_of_new_record(self):
        self.assertEqual('/people/.json', Person(name='Ryan').element_path())
        self.assertEqual('/people/.json', Person.element_path(None))

    def test_element_path_with_prefix(self):
        self.assertEqual('/people/1/addresses/2.json', StreetAddress.element_path(2, {'person_id': 1}))
        self.assertEqual('/people/1/addresses/2.json?type=work',
                         StreetAddress.element_path(2, {'person_id': 1, 'type': 'work'}))

    def test_element_path_missing_prefix_option(self):
        with self.assertRaises(MissingPrefixParam):
            StreetAddress.element_path(2)
        with self.assertRaises(MissingPrefixParam):
            StreetAddress.element_path(2, {'person_id': None})

    def test_new_element_path(self):
        self.assertEqual('/people/new.json', Person.new_element_path())
        self.assertEqual('/people/1/addresses/new.json', StreetAddress.new_element_path({'person_id': 1}))

    def test_collection_path(self):
        self.assertEqual('/people.json', Person.collection_path())
        self.assertEqual('/people.json?name=Matz', Person.collection_path({'name': 'Matz'}))
        self.assertEqual('/people/1/addresses.json', StreetAddress.collection_path({'person_id': 1}))

    def test_instance_paths(self):
        address = StreetAddress({'id': 2, 'person_id': 1}, persisted=True)
        self.assertEqual({'person_id': 1}, address.prefix_options)
        self.assertEqual('/people/1/addresses/2.json', address.element_path())
        self.assertEqual('/people/1/addresses.json', address.collection_path())
        self.assertEqual('/people/1/addresses/new.json', address.new_element_path())

    def test_prefix_from_site_path(self):
        class Book(Resource):
            class Meta:
                site = 'http://example.com/api/v1'

        self.assertEqual('/api/v1/', Book.prefix_source())
        self.assertEqual('/api/v1/books/1.json', Book.element_path(1))

    def test_set_prefix(self):
        class Comment(Resource):
            class Meta:
                site = SITE

        self.assertEqual(frozenset(), Comment.prefix_parameters())

        Comment.set_prefix('/posts/:post_id/')
        self.assertEqual('/posts/:post_id/', Comment.prefix_source())
        self.assertEqual({'post_id'}, Comment.prefix_parameters())
        self.assertEqual('/posts/4/', Comment.prefix({'post_id': 4}))
        self.assertEqual('/posts/4/comments/1.json', Comment.element_path(1, {'post_id': 4}))
