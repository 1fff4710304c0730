from collections import OrderedDict

from jsonschema import Draft4Validator, FormatChecker
from werkzeug.utils import cached_property

from .reference import ResourceBound


def _format_error(error):
    return {
        'validationOf': {error.validator: error.validator_value},
        'path': tuple(error.absolute_path),
        'message': error.message
    }


class FieldSet(ResourceBound):
    """
    A schema representation of a dictionary of :class:`fields.Raw` objects.

    Used for local validation of items before they are sent. Attributes that have no field are not checked, and
    neither are attributes that are ``None`` unless they are required.

    :param dict fields: a dictionary of :class:`fields.Raw` objects
    :param required_fields: a list or tuple of attribute names that must be present and not ``None``
    """

    def __init__(self, fields, required_fields=None):
        self.fields = dict(fields)
        self.required = tuple(required_fields or ())
        for key, field in self.fields.items():
            if field.name is None:
                field.name = key

    def bind(self, resource):
        if self.resource is None:
            self.resource = resource
            fields = {}
            for key, field in self.fields.items():
                if isinstance(field, ResourceBound):
                    field = field.bind(resource)
                field.name = key
                fields[key] = field
            self.fields = fields
        elif self.resource != resource:
            return self.rebind(resource)
        return self

    def rebind(self, resource):
        return FieldSet(dict(self.fields), self.required).bind(resource)

    def schema(self):
        schema = {
            "type": "object",
            "properties": OrderedDict((field.key, field.request) for key, field in sorted(self.fields.items()))
        }

        if self.required:
            schema['required'] = sorted(set(self.required))
        return schema

    @cached_property
    def _validator(self):
        schema = self.schema()
        Draft4Validator.check_schema(schema)
        return Draft4Validator(schema, format_checker=FormatChecker())

    @cached_property
    def _fields_by_key(self):
        return {field.key: field for field in self.fields.values()}

    def format(self, attributes):
        """
        Formats the declared attributes in ``attributes`` for the wire. Other attributes are passed through.
        """
        result = dict(attributes)
        for key, field in self._fields_by_key.items():
            if key in result:
                result[key] = field.format(result[key])
        return result

    def validate(self, attributes):
        """
        Validates ``attributes``, a dictionary of attributes in their wire representation.

        :return: a list of error dictionaries, each with ``path``, ``validationOf`` and ``message``
        """
        errors = []
        instance = {}

        for key, value in attributes.items():
            if value is None:
                continue

            field = self._fields_by_key.get(key)
            if field is not None:
                try:
                    value = field.format(value)
                except (TypeError, ValueError):
                    errors.append({
                        'validationOf': {'type': field.request.get('type')},
                        'path': (key,),
                        'message': '{} is not a valid {}'.format(repr(value), field.__class__.__name__.lower())
                    })
                    continue
            instance[key] = value

        errors.extend(_format_error(error) for error in self._validator.iter_errors(instance))
        return errors
