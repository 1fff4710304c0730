"""
Logs every request sent through a resource connection on the ``potion_client`` logger:

::

    INFO GET http://api.example.com/people/1.json
    INFO --> 200 OK 27 (1.3ms)

The receiver is connected when :mod:`potion_client` is imported. Configure the logger to see the output.
"""
import logging

from . import signals

logger = logging.getLogger('potion_client')


def _body_length(response):
    length = response.headers.get('Content-Length')
    if length is not None:
        return length
    if isinstance(response.body, (str, bytes)):
        return len(response.body)
    return '-'


@signals.request.connect
def log_request(sender, method, url, response, duration, **kwargs):
    logger.info('%s %s', method, url)
    logger.info('--> %d %s %s (%.1fms)', response.status, response.reason, _body_length(response), duration)
