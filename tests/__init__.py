import json
from unittest import TestCase

from potion_client import Stubs


class BaseTestCase(TestCase):
    """
    Points :attr:`resources` at a fresh stub table, available as ``self.stubs``, before each test.
    """
    resources = ()

    def setUp(self):
        super(BaseTestCase, self).setUp()
        self.stubs = Stubs()
        for resource in self.resources:
            resource.set_adapter('test', self.stubs)

    def _load(self, value):
        if isinstance(value, (str, bytes)):
            return json.loads(value)
        return json.loads(json.dumps(value))

    def assertJSONEqual(self, first, second, msg=None):
        self.assertEqual(self._load(first), self._load(second), msg)

    def assertRequest(self, method, path, request=None):
        request = request or self.stubs.last_request
        self.assertIsNotNone(request)
        self.assertEqual((method, path), (request.method, request.path))
