import base64
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from xml.etree.ElementTree import Element, tostring, ParseError

import aniso8601
import inflection
from defusedxml import ElementTree

from .middleware import Middleware
from .utils import blank, remove_root

logger = logging.getLogger(__name__)

__all__ = ('Format', 'JsonFormat', 'XmlFormat', 'remove_root', 'lookup')


class Format(Middleware):
    """
    Base class for wire formats. A format is both a codec --- through its class methods --- and the pipeline
    stage that encodes request bodies and decodes response bodies.

    Subclasses implement :meth:`encode`, :meth:`decode`, :meth:`extension` and :meth:`mime_type`.
    """

    @classmethod
    def extension(cls):
        raise NotImplementedError()

    @classmethod
    def mime_type(cls):
        raise NotImplementedError()

    @classmethod
    def encode(cls, data, root=None):
        raise NotImplementedError()

    @classmethod
    def decode(cls, text):
        raise NotImplementedError()

    def __call__(self, request):
        request.headers.setdefault('Content-Type', self.mime_type())
        if not blank(request.body):
            request.body = self.encode(request.body)

        response = self.app(request)

        if isinstance(response.body, str) and response.body.strip():
            try:
                response.body = self.decode(response.body)
            except ValueError:
                if response.status < 400:
                    raise
                logger.debug('Keeping undecodable %s body of a %d response', self.extension(), response.status)
        return response


def _json_default(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError('{} is not JSON serializable'.format(repr(value)))


class JsonFormat(Format):

    @classmethod
    def extension(cls):
        return 'json'

    @classmethod
    def mime_type(cls):
        return 'application/json'

    @classmethod
    def encode(cls, data, root=None):
        if isinstance(data, (str, bytes)):
            return data
        if root:
            data = {root: data}
        return json.dumps(data, default=_json_default)

    @classmethod
    def decode(cls, text):
        return json.loads(text)


XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def _parse_boolean(text):
    return text.strip().lower() in ('true', '1')


XML_PARSERS = {
    'integer': int,
    'float': float,
    'double': float,
    'decimal': Decimal,
    'boolean': _parse_boolean,
    'date': aniso8601.parse_date,
    'datetime': aniso8601.parse_datetime,
    'dateTime': aniso8601.parse_datetime,
    'base64Binary': base64.b64decode,
}


class XmlFormat(Format):
    """
    XML in the shape Rails produces and consumes: keys are dasherized tags, non-string leaves carry a ``type``
    attribute, ``None`` is ``nil="true"`` and sequences are ``type="array"`` elements.

    :meth:`decode` returns ``{document_element: content}``; the document element is removed, like any other
    wrapping root, by the :class:`middleware.RemoveRoot` stage.
    """

    @classmethod
    def extension(cls):
        return 'xml'

    @classmethod
    def mime_type(cls):
        return 'application/xml'

    @classmethod
    def encode(cls, data, root=None):
        if isinstance(data, (str, bytes)):
            return data
        if root is None:
            root = 'objects' if isinstance(data, (list, tuple)) else 'hash'
        return XML_DECLARATION + tostring(cls._to_element(root, data), encoding='unicode')

    @classmethod
    def _to_element(cls, name, value):
        element = Element(inflection.dasherize(str(name)))

        if value is None:
            element.set('nil', 'true')
        elif isinstance(value, dict):
            for key, item in value.items():
                element.append(cls._to_element(key, item))
        elif isinstance(value, (list, tuple)):
            element.set('type', 'array')
            child_name = inflection.singularize(str(name))
            if child_name == name:
                child_name = 'object'
            for item in value:
                element.append(cls._to_element(child_name, item))
        elif isinstance(value, bool):
            element.set('type', 'boolean')
            element.text = 'true' if value else 'false'
        elif isinstance(value, int):
            element.set('type', 'integer')
            element.text = str(value)
        elif isinstance(value, float):
            element.set('type', 'float')
            element.text = repr(value)
        elif isinstance(value, Decimal):
            element.set('type', 'decimal')
            element.text = str(value)
        elif isinstance(value, datetime):
            element.set('type', 'dateTime')
            element.text = value.isoformat()
        elif isinstance(value, date):
            element.set('type', 'date')
            element.text = value.isoformat()
        else:
            value = str(value)
            if not value:
                element.set('type', 'string')
            element.text = value
        return element

    @classmethod
    def decode(cls, text):
        try:
            root = ElementTree.fromstring(text)
        except ParseError as e:
            raise ValueError('Invalid XML: {}'.format(e))
        return {inflection.underscore(root.tag): cls._from_element(root)}

    @classmethod
    def _from_element(cls, element):
        if element.get('nil') == 'true':
            return None

        type_ = element.get('type')
        children = list(element)

        if type_ == 'array':
            return [cls._from_element(child) for child in children]

        if children:
            result = {}
            for child in children:
                key = inflection.underscore(child.tag)
                value = cls._from_element(child)
                if key not in result:
                    result[key] = value
                elif isinstance(result[key], list):
                    result[key].append(value)
                else:
                    result[key] = [result[key], value]
            return result

        text = element.text or ''
        if type_ in XML_PARSERS:
            text = text.strip()
            return XML_PARSERS[type_](text) if text else None
        if type_ is None and not text:
            return None
        return text


FORMATS = {
    'json': JsonFormat,
    'xml': XmlFormat
}


def lookup(format):
    """
    Returns the :class:`Format` for a name such as ``'json'`` or ``'xml'``; :class:`Format` subclasses are
    returned as they are.
    """
    if isinstance(format, type) and issubclass(format, Format):
        return format
    try:
        return FORMATS[format]
    except (KeyError, TypeError):
        raise ValueError('Unknown format: {}'.format(repr(format)))
