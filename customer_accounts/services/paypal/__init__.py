"""PayPal billing agreements, via the legacy NVP API."""

from typing import Optional

from werkzeug.local import LocalProxy

from .client import PayPalClient
from .customers import PaypalCustomerManager
from .manager import PayPalManager


def init_app(app: Optional[LocalProxy] = None) -> None:
    """
    Set required configuration defaults for the application.

    Parameters
    ----------
    app : :class:`werkzeug.local.LocalProxy`
    """
    if app is not None:
        app.config.setdefault('PAYPAL_NVP_URL',
                              'https://api-3t.sandbox.paypal.com/nvp')
        app.config.setdefault('PAYPAL_NVP_USER', '')
        app.config.setdefault('PAYPAL_NVP_PWD', '')
        app.config.setdefault('PAYPAL_NVP_SIGNATURE', '')
        app.config.setdefault('PAYPAL_RETURN_URL', '')
        app.config.setdefault('PAYPAL_CANCEL_URL', '')


def get_client(config: dict) -> PayPalClient:
    """Create a :class:`.PayPalClient` from application config."""
    return PayPalClient(
        config['PAYPAL_NVP_URL'],
        config['PAYPAL_NVP_USER'],
        config['PAYPAL_NVP_PWD'],
        config['PAYPAL_NVP_SIGNATURE'],
        return_url=config['PAYPAL_RETURN_URL'],
        cancel_url=config['PAYPAL_CANCEL_URL']
    )
