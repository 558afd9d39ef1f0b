"""Tells the devices registered to an account that something happened."""

import logging
from typing import List, Optional

import requests
from werkzeug.local import LocalProxy

logger = logging.getLogger(__name__)

ACCOUNT_DESTROYED = 'fxaccounts:account_destroyed'
"""Push command sent when an account is deleted."""


class PushNotifier(object):
    """
    Sends commands to devices through the push server.

    The push server owns delivery; a request that it accepts is as far as we
    follow it.
    """

    def __init__(self, endpoint: str) -> None:
        """Create a new HTTP session."""
        self.endpoint = endpoint.rstrip('/')
        self._session = requests.Session()
        self._adapter = requests.adapters.HTTPAdapter(max_retries=2)
        self._session.mount('http://', self._adapter)
        self._session.mount('https://', self._adapter)
        logger.debug('New PushNotifier for %s', endpoint)

    def notify_account_destroyed(self, uid: str,
                                 device_ids: List[str]) -> None:
        """
        Tell the devices of ``uid`` that the account has been deleted.

        Raises
        ------
        IOError
            If the push server does not accept the request.

        """
        if not device_ids:
            logger.debug('No devices to notify for %s', uid)
            return
        response = self._session.post(
            f'{self.endpoint}/v1/accounts/{uid}/notify',
            json={'command': ACCOUNT_DESTROYED,
                  'data': {'uid': uid},
                  'deviceIds': device_ids}
        )
        if not response.ok:
            raise IOError('Push server responded with status %i'
                          % response.status_code)
        logger.debug('Notified %i devices of %s', len(device_ids), uid)


def init_app(app: Optional[LocalProxy] = None) -> None:
    """Set required configuration defaults for the application."""
    if app is not None:
        app.config.setdefault('PUSH_SERVER_URL', 'http://localhost:8090')
