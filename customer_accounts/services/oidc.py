"""Verifies the OIDC tokens that Cloud Tasks attaches to task callbacks.

Each task is created with an OIDC token for a service account. When the
queue delivers the task it sends the token along as a bearer token, signed by
Google. Callers check the audience here and the service account email with
:func:`email_from_idinfo`.
"""
from contextlib import contextmanager
from threading import RLock
from typing import Generator, Optional, Union

import google.oauth2.id_token
import google.auth.transport.requests

import requests
import cachecontrol

_sess = None
"""Session with caching of Google's certs."""

_lock = RLock()
"""The cached session is not thread safe."""


@contextmanager
def locked_session() -> Generator[requests.Session, None, None]:
    """Get a session with caching of certs from Google."""
    global _sess
    with _lock:
        if not _sess:
            _sess = cachecontrol.CacheControl(requests.session())
        yield _sess


def verify_token(audience: str, token: Union[str, bytes]) -> Optional[dict]:
    """
    Call out to Google to verify a task's OIDC token.

    Raises
    ------
    ValueError
        If the token is malformed, expired, or for another audience.

    """
    with locked_session() as session:
        request = google.auth.transport.requests.Request(session=session)
        idinfo = google.oauth2.id_token.verify_oauth2_token(token, request,
                                                            audience)
        if not idinfo:
            return None
        return dict(idinfo)


def email_from_idinfo(idinfo: dict) -> Optional[str]:
    if not idinfo.get('email_verified', True):
        return None
    return idinfo.get('email', idinfo.get('azp', None))
