from werkzeug.http import HTTP_STATUS_CODES, parse_set_header


class ConnectionError(Exception):
    """
    Base class for every error raised from a remote call.

    :param response: the :class:`connection.Response` that triggered the error, if any
    :param str message: optional message replacing the generated one
    """

    def __init__(self, response=None, message=None):
        super(ConnectionError, self).__init__(message)
        self.response = response
        self.message = message

    @property
    def status_code(self):
        if self.response is None:
            return None
        return self.response.status

    def __str__(self):
        if self.message is not None:
            return self.message

        message = 'Failed.'
        if self.response is not None:
            message += '  Response code = {}.'.format(self.response.status)
            reason = HTTP_STATUS_CODES.get(self.response.status)
            if reason:
                message += '  Response message = {}.'.format(reason)
        return message


class TimeoutError(ConnectionError):
    def __init__(self, message):
        super(TimeoutError, self).__init__(message=message)


class SSLError(ConnectionError):
    def __init__(self, message):
        super(SSLError, self).__init__(message=message)


class Redirection(ConnectionError):

    def __str__(self):
        message = super(Redirection, self).__str__()
        location = self.response.headers.get('Location') if self.response is not None else None
        if location:
            return '{} => {}'.format(message, location)
        return message


class ClientError(ConnectionError):
    pass


class BadRequest(ClientError):
    pass


class UnauthorizedAccess(ClientError):
    pass


class ForbiddenAccess(ClientError):
    pass


class ResourceNotFound(ClientError):
    pass


class ResourceConflict(ClientError):
    pass


class ResourceGone(ClientError):
    pass


class MethodNotAllowed(ClientError):

    @property
    def allowed_methods(self):
        allow = self.response.headers.get('Allow', '')
        return [verb.lower() for verb in parse_set_header(allow)]


class ResourceInvalid(ClientError):
    """
    Raised for a ``422 Unprocessable Entity`` response, or locally by
    :meth:`Resource.save_or_raise` when validation fails. In the latter case
    no request is made and :attr:`errors` holds the validation errors.
    """

    def __init__(self, response=None, message=None, errors=None):
        super(ResourceInvalid, self).__init__(response, message)
        self.errors = errors or []

    def __str__(self):
        if self.response is None and self.message is None and self.errors:
            return 'Validation failed: {}'.format(
                '; '.join(error['message'] for error in self.errors))
        return super(ResourceInvalid, self).__str__()


class ServerError(ConnectionError):
    pass


class MissingPrefixParam(ValueError):
    pass


class UnknownAttribute(KeyError, AttributeError):

    def __init__(self, resource, name):
        super(UnknownAttribute, self).__init__(name)
        self.resource = resource
        self.name = name

    def __str__(self):
        return "'{}' has no attribute '{}'".format(self.resource.__class__.__name__, self.name)
