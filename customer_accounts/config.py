"""Flask configuration."""
import os
from typing import Any, Mapping, NamedTuple, Optional

VERSION = '0.3.0'
"""The application version."""

#################### General config for app ####################
PUBLIC_URL = os.environ.get('PUBLIC_URL', 'http://localhost:9000')
"""Public base URL of this service; task callbacks are delivered here."""

API_VERSION = int(os.environ.get('API_VERSION', '1'))
"""Prefix version of the internal API, as in ``/v1/...``."""

CREATE_DB = bool(int(os.environ.get('CREATE_DB', 0)))

#################### Cloud Tasks ####################
CLOUD_TASKS_PROJECT_ID = os.environ.get('CLOUD_TASKS_PROJECT_ID', 'test')
CLOUD_TASKS_LOCATION_ID = os.environ.get('CLOUD_TASKS_LOCATION_ID',
                                         'us-central1')
CLOUD_TASKS_DELETE_ACCOUNTS_QUEUE = os.environ.get(
    'CLOUD_TASKS_DELETE_ACCOUNTS_QUEUE',
    'delete-accounts-queue'
)
"""Name of the queue that account deletion tasks are scheduled on."""

CLOUD_TASKS_OIDC_AUDIENCE = os.environ.get('CLOUD_TASKS_OIDC_AUDIENCE',
                                           PUBLIC_URL)
"""Audience of the OIDC token that Cloud Tasks attaches to callbacks."""

CLOUD_TASKS_OIDC_SERVICE_ACCOUNT_EMAIL = os.environ.get(
    'CLOUD_TASKS_OIDC_SERVICE_ACCOUNT_EMAIL',
    'delete-accounts@test.iam.gserviceaccount.com'
)
"""Service account that signs the OIDC token of each delivered task.

Callbacks carrying a token for any other account are refused."""

REFUND_PERIOD_DAYS = os.environ.get('REFUND_PERIOD_DAYS')
"""Only invoices created within this many days are refunded.

If not set, all paid invoices on active subscriptions are eligible."""

#################### Databases ####################
SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI',
                                         'sqlite:///:memory:')
SQLALCHEMY_TRACK_MODIFICATIONS = False

REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
REDIS_PORT = os.environ.get('REDIS_PORT', '6379')
REDIS_DATABASE = os.environ.get('REDIS_DATABASE', '0')
"""Redis holds the cache of Stripe customer objects."""

#################### Payment providers ####################
STRIPE_API_KEY = os.environ.get('STRIPE_API_KEY', 'sk_test_nope')
STRIPE_CUSTOMER_CACHE_TTL = int(os.environ.get('STRIPE_CUSTOMER_CACHE_TTL',
                                               '3600'))

PAYPAL_NVP_URL = os.environ.get('PAYPAL_NVP_URL',
                                'https://api-3t.sandbox.paypal.com/nvp')
PAYPAL_NVP_USER = os.environ.get('PAYPAL_NVP_USER', 'nope')
PAYPAL_NVP_PWD = os.environ.get('PAYPAL_NVP_PWD', 'nope')
PAYPAL_NVP_SIGNATURE = os.environ.get('PAYPAL_NVP_SIGNATURE', 'nope')
PAYPAL_RETURN_URL = os.environ.get('PAYPAL_RETURN_URL',
                                   f'{PUBLIC_URL}/paypal/return')
PAYPAL_CANCEL_URL = os.environ.get('PAYPAL_CANCEL_URL',
                                   f'{PUBLIC_URL}/paypal/cancel')

#################### Devices and messages ####################
PUSH_SERVER_URL = os.environ.get('PUSH_SERVER_URL', 'http://localhost:8090')
PUSHBOX_URL = os.environ.get('PUSHBOX_URL', 'http://localhost:8002')

#################### Observability ####################
STATSD_HOST = os.environ.get('STATSD_HOST', 'localhost')
STATSD_PORT = os.environ.get('STATSD_PORT', '8125')
STATSD_PREFIX = os.environ.get('STATSD_PREFIX', 'customer-accounts')

LOGLEVEL = os.environ.get('LOGLEVEL', 20)


class DeleteAccountConfig(NamedTuple):
    """Settings used by the account deletion components."""

    project_id: str
    location_id: str
    queue_name: str
    public_url: str
    api_version: int
    oidc_audience: str
    oidc_service_account_email: str
    refund_period_days: Optional[int] = None

    @property
    def task_url(self) -> str:
        """Where Cloud Tasks delivers account deletion tasks."""
        base = self.public_url.rstrip('/')
        return f'{base}/v{self.api_version}/cloud-tasks/accounts/delete'

    @property
    def queue_path(self) -> str:
        """Fully qualified name of the deletion queue."""
        return (f'projects/{self.project_id}/locations/{self.location_id}'
                f'/queues/{self.queue_name}')

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'DeleteAccountConfig':
        """Build the settings from a Flask config mapping."""
        refund_period = config.get('REFUND_PERIOD_DAYS')
        return cls(
            project_id=config['CLOUD_TASKS_PROJECT_ID'],
            location_id=config['CLOUD_TASKS_LOCATION_ID'],
            queue_name=config['CLOUD_TASKS_DELETE_ACCOUNTS_QUEUE'],
            public_url=config['PUBLIC_URL'],
            api_version=int(config['API_VERSION']),
            oidc_audience=config['CLOUD_TASKS_OIDC_AUDIENCE'],
            oidc_service_account_email=config[
                'CLOUD_TASKS_OIDC_SERVICE_ACCOUNT_EMAIL'
            ],
            refund_period_days=(int(refund_period)
                                if refund_period not in (None, '') else None)
        )
