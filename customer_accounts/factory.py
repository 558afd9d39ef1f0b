"""Application factory for the customer accounts service."""

import logging

from flask import Flask
import redis

from customer_accounts import app_logging
from customer_accounts.config import DeleteAccountConfig
from customer_accounts.routes import tasks as task_routes
from customer_accounts.services import database, metrics, paypal, push, \
    pushbox, stripe_manager, tasks
from customer_accounts.services.account_delete import AccountDeleteManager
from customer_accounts.services.accounts_db import AccountsDB
from customer_accounts.services.oauth_db import OAuthDB

logger = logging.getLogger(__name__)


def build_account_delete_manager(app: Flask) -> AccountDeleteManager:
    """Wire up an :class:`.AccountDeleteManager` from application config."""
    config = app.config
    delete_config = DeleteAccountConfig.from_config(config)
    cache = redis.StrictRedis(host=config['REDIS_HOST'],
                              port=int(config['REDIS_PORT']),
                              db=int(config['REDIS_DATABASE']))
    stripe = stripe_manager.StripeManager(
        config['STRIPE_API_KEY'],
        cache,
        cache_ttl=int(config['STRIPE_CUSTOMER_CACHE_TTL'])
    )
    paypal_customers = paypal.PaypalCustomerManager()
    return AccountDeleteManager(
        accounts=AccountsDB(),
        oauth=OAuthDB(),
        push=push.PushNotifier(config['PUSH_SERVER_URL']),
        pushbox=pushbox.PushboxClient(config['PUSHBOX_URL']),
        stripe=stripe,
        paypal=paypal.PayPalManager(paypal.get_client(config), stripe,
                                    paypal_customers),
        paypal_customers=paypal_customers,
        account_tasks=tasks.AccountTasks(delete_config),
        statsd=metrics.StatsdMetrics(config['STATSD_HOST'],
                                     config['STATSD_PORT'],
                                     prefix=config['STATSD_PREFIX']),
        config=delete_config
    )


def create_web_app() -> Flask:
    """Initialize and configure the customer accounts application."""
    app = Flask('customer_accounts')
    app.config.from_pyfile('config.py')
    app_logging.setup_logger(app.config['LOGLEVEL'])

    database.init_app(app)
    stripe_manager.init_app(app)
    paypal.init_app(app)
    tasks.init_app(app)
    push.init_app(app)
    pushbox.init_app(app)
    metrics.init_app(app)

    app.extensions['account_delete'] = build_account_delete_manager(app)
    app.register_blueprint(task_routes.blueprint)

    if app.config['CREATE_DB']:
        with app.app_context():
            database.create_all()

    logger.debug('Created app %s', app.config['VERSION'])
    return app
