"""Integration with pushbox, the store of undelivered device messages."""

import logging
from typing import Optional

import requests
from werkzeug.local import LocalProxy

logger = logging.getLogger(__name__)


class PushboxClient(object):
    """Removes the messages that are waiting for an account's devices."""

    def __init__(self, endpoint: str) -> None:
        """Create a new HTTP session."""
        self.endpoint = endpoint.rstrip('/')
        self._session = requests.Session()
        self._adapter = requests.adapters.HTTPAdapter(max_retries=2)
        self._session.mount('http://', self._adapter)
        self._session.mount('https://', self._adapter)

    def delete_account(self, uid: str) -> None:
        """
        Delete every stored message for ``uid``.

        Raises
        ------
        IOError
            If pushbox responds with an error other than 404.

        """
        response = self._session.delete(f'{self.endpoint}/v1/store/{uid}')
        if response.status_code == requests.codes.not_found:
            logger.debug('Pushbox has nothing for %s', uid)
            return
        if not response.ok:
            raise IOError('Pushbox responded with status %i'
                          % response.status_code)


def init_app(app: Optional[LocalProxy] = None) -> None:
    """Set required configuration defaults for the application."""
    if app is not None:
        app.config.setdefault('PUSHBOX_URL', 'http://localhost:8002')
