from unittest import TestCase

from potion_client import Resource, fields
from potion_client.schema import FieldSet
from tests.fixtures import SITE


class FieldSetTestCase(TestCase):

    def test_schema(self):
        fs = FieldSet({
            "name": fields.String(),
            "age": fields.Integer(minimum=0, attribute='years')
        }, required_fields=['name', 'name'])

        self.assertEqual({
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "years": {"type": "integer", "minimum": 0}
            },
            "required": ["name"]
        }, fs.schema())

    def test_schema_without_required(self):
        self.assertNotIn('required', FieldSet({"name": fields.String()}).schema())

    def test_bind_sets_names(self):
        class Foo(Resource):
            class Meta:
                site = SITE

        fs = FieldSet({"name": fields.String()}).bind(Foo)

        self.assertIs(Foo, fs.resource)
        self.assertEqual('name', fs.fields['name'].name)
        self.assertIs(fs, fs.bind(Foo))

    def test_rebind(self):
        class Foo(Resource):
            class Meta:
                site = SITE

        class Bar(Resource):
            class Meta:
                site = SITE

        fs = FieldSet({"friend": fields.ToOne('self')}).bind(Foo)
        other = fs.bind(Bar)

        self.assertIsNot(fs, other)
        self.assertIs(Foo, fs.fields['friend'].target)
        self.assertIs(Bar, other.fields['friend'].target)

    def test_format(self):
        class Foo(Resource):
            class Meta:
                site = SITE

        fs = FieldSet({
            "born": fields.Date(),
            "age": fields.Integer(attribute='years')
        }).bind(Foo)

        self.assertEqual({'born': '2016-01-02', 'years': 3, 'other': 'x'},
                         fs.format({'born': '2016-01-02', 'years': '3', 'other': 'x'}))

    def test_validate(self):
        fs = FieldSet({
            "name": fields.String(min_length=2),
            "email": fields.Email(),
            "tags": fields.Array(fields.String(), max_items=1)
        }, required_fields=['name'])

        self.assertEqual([], fs.validate({'name': 'Matz', 'email': 'matz@example.com', 'tags': ['a']}))

        errors = fs.validate({'name': 'M', 'email': 'no email', 'tags': ['a', 'b']})
        self.assertEqual({('name',), ('email',), ('tags',)}, {error['path'] for error in errors})
        self.assertEqual({'minLength': 2}, next(e for e in errors if e['path'] == ('name',))['validationOf'])

    def test_validate_required(self):
        fs = FieldSet({"name": fields.String()}, required_fields=['name'])

        errors = fs.validate({'name': None})
        self.assertEqual(1, len(errors))
        self.assertEqual({'required': ['name']}, errors[0]['validationOf'])
        self.assertEqual((), errors[0]['path'])
        self.assertEqual("'name' is a required property", errors[0]['message'])

    def test_validate_nested_path(self):
        fs = FieldSet({"tags": fields.Array(fields.String())})

        errors = fs.validate({'tags': ['a', 1]})
        self.assertEqual([('tags', 1)], [error['path'] for error in errors])

    def test_validate_formatter_error(self):
        fs = FieldSet({"count": fields.Integer(), "weight": fields.Number()})

        errors = fs.validate({'count': 'x', 'weight': 'heavy'})
        self.assertEqual({
            ('count',): "'x' is not a valid integer",
            ('weight',): "'heavy' is not a valid number"
        }, {error['path']: error['message'] for error in errors})
