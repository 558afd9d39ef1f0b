"""Web Server Gateway Interface entry-point."""

import os

from customer_accounts.factory import create_web_app

__flask_app__ = None


def application(environ, start_response):    # type: ignore
    """WSGI application."""
    global __flask_app__
    if __flask_app__ is None:
        load_config(environ)
        __flask_app__ = create_web_app()
    return __flask_app__(environ, start_response)


def load_config(environ):    # type: ignore
    """
    Copy deployment settings from the WSGI environ into ``os.environ``.

    Only plain strings are copied; uWSGI also puts sockets and the like in
    here. Request headers (``HTTP_*``) and ``SERVER_NAME`` are left alone.
    """
    for key, value in environ.items():
        if key == 'SERVER_NAME' or key.startswith('HTTP_') \
                or not isinstance(value, str):
            continue
        os.environ[key] = value
