"""Fixtures for the application tests."""
from unittest import mock

import pytest

from customer_accounts.factory import create_web_app

AUDIENCE = 'https://tasks.example.io'
SERVICE_ACCOUNT = 'delete-accounts@test.iam.gserviceaccount.com'


@pytest.fixture
def app():
    """The application, with a mock :class:`.AccountDeleteManager`."""
    app = create_web_app()
    app.config['TESTING'] = True
    app.config['CLOUD_TASKS_OIDC_AUDIENCE'] = AUDIENCE
    app.config['CLOUD_TASKS_OIDC_SERVICE_ACCOUNT_EMAIL'] = SERVICE_ACCOUNT
    app.extensions['account_delete'] = mock.MagicMock()
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def manager(app):
    return app.extensions['account_delete']
