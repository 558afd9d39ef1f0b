"""Counters sent to StatsD."""

import logging
from typing import Optional

import statsd
from werkzeug.local import LocalProxy

logger = logging.getLogger(__name__)


class StatsdMetrics(object):
    """Increments named counters. Delivery is fire-and-forget over UDP."""

    def __init__(self, host: str, port: int, prefix: Optional[str] = None,
                 client: Optional[statsd.StatsClient] = None) -> None:
        self._client = client or statsd.StatsClient(host, int(port),
                                                    prefix=prefix)

    def increment(self, name: str, count: int = 1) -> None:
        logger.debug('metric %s +%i', name, count)
        self._client.incr(name, count)


def init_app(app: Optional[LocalProxy] = None) -> None:
    """Set required configuration defaults for the application."""
    if app is not None:
        app.config.setdefault('STATSD_HOST', 'localhost')
        app.config.setdefault('STATSD_PORT', '8125')
        app.config.setdefault('STATSD_PREFIX', None)
