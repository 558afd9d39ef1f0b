"""
Integration with Stripe.

Customers are looked up through the ``accountCustomers`` table, which maps
account uids to Stripe customer ids. Customer objects are cached in Redis so
that repeated lookups during a request do not round-trip to Stripe.
"""

from datetime import datetime
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import redis
import stripe
from werkzeug.local import LocalProxy

from customer_accounts.domain import RefundResult, field, object_id
from customer_accounts.services import database
from customer_accounts.services.database.models import DBAccountCustomer
from customer_accounts.services.exceptions import CustomerDeleted, \
    StripeNoMinimumChargeAmountAvailableError

logger = logging.getLogger(__name__)

MINIMUM_AMOUNTS: Dict[str, int] = {
    'usd': 50, 'aed': 200, 'aud': 50, 'bgn': 100, 'brl': 50, 'cad': 50,
    'chf': 50, 'czk': 1500, 'dkk': 250, 'eur': 50, 'gbp': 30, 'hkd': 400,
    'huf': 17500, 'inr': 50, 'jpy': 50, 'mxn': 1000, 'myr': 200, 'nok': 300,
    'nzd': 50, 'pln': 200, 'ron': 200, 'sek': 300, 'sgd': 50,
}
"""Smallest amount Stripe will charge, in the smallest currency unit."""


class StripeManager(object):
    """
    Reads and removes Stripe customers, invoices and subscriptions.

    Errors raised by the ``stripe`` library propagate unchanged, except where
    noted.
    """

    def __init__(self, api_key: str, cache: redis.StrictRedis,
                 cache_ttl: int = 3600) -> None:
        self.api_key = api_key
        self.cache = cache
        self.cache_ttl = cache_ttl

    def customer_id(self, uid: str) -> Optional[str]:
        """Get the Stripe customer id linked to ``uid``, if there is one."""
        with database.transaction() as session:
            record = session.get(DBAccountCustomer, uid)
        if record is None:
            return None
        return record.stripe_customer_id

    def fetch_customer(self, uid: str) -> Optional[stripe.Customer]:
        """
        Get the Stripe customer for ``uid``.

        Returns
        -------
        :class:`stripe.Customer` or None
            None if the account has no customer, or the customer was deleted.

        """
        customer_id = self.customer_id(uid)
        if not customer_id:
            return None
        cached = self.cache.get(_cache_key(uid))
        if cached:
            return stripe.Customer.construct_from(json.loads(cached),
                                                  self.api_key)
        try:
            customer = stripe.Customer.retrieve(customer_id,
                                                api_key=self.api_key,
                                                expand=['subscriptions'])
        except stripe.InvalidRequestError as e:
            if e.code == 'resource_missing':
                return None
            raise
        if field(customer, 'deleted'):
            return None
        self.cache.set(_cache_key(uid), json.dumps(customer.to_dict()),
                       ex=self.cache_ttl)
        return customer

    def fetch_active_customer(self, customer_id: str) -> stripe.Customer:
        """
        Get a customer by its Stripe id.

        Raises
        ------
        :class:`.CustomerDeleted`
            If the customer has been deleted in Stripe.

        """
        customer = stripe.Customer.retrieve(customer_id, api_key=self.api_key)
        if field(customer, 'deleted'):
            raise CustomerDeleted(f'Customer {customer_id} was deleted')
        return customer

    def remove_customer(self, uid: str) -> None:
        """
        Delete the Stripe customer for ``uid`` and the link to it.

        A customer that Stripe no longer knows about is treated as deleted.
        """
        customer_id = self.customer_id(uid)
        if customer_id:
            try:
                stripe.Customer.delete(customer_id, api_key=self.api_key)
            except stripe.InvalidRequestError as e:
                if e.code != 'resource_missing':
                    raise
                logger.info('Stripe customer %s is already gone', customer_id)
        with database.transaction() as session:
            session.query(DBAccountCustomer) \
                .filter(DBAccountCustomer.uid == uid) \
                .delete(synchronize_session=False)
            session.commit()
        self.remove_cached_customer(uid)

    def remove_cached_customer(self, uid: str) -> None:
        """Drop our cached copy of the customer for ``uid``."""
        self.cache.delete(_cache_key(uid))

    def get_subscriptions(self, customer_id: str) -> List[stripe.Subscription]:
        """Get every subscription that belongs to a customer."""
        subscriptions = stripe.Subscription.list(customer=customer_id,
                                                 status='all',
                                                 api_key=self.api_key)
        return list(subscriptions.auto_paging_iter())

    def fetch_invoices_for_active_subscriptions(
            self, customer_id: str, status: str,
            since: Optional[datetime] = None) -> List[stripe.Invoice]:
        """
        Get invoices with ``status`` that belong to active subscriptions.

        Parameters
        ----------
        customer_id : str
        status : str
            Invoice status, e.g. ``paid``.
        since : :class:`datetime`
            If given, only invoices created at or after this time are
            included.

        """
        params: Dict[str, Any] = {'customer': customer_id, 'status': status}
        if since is not None:
            params['created'] = {'gte': int(since.timestamp())}
        active = {subscription['id'] for subscription
                  in self.get_subscriptions(customer_id)
                  if field(subscription, 'status') == 'active'}
        invoices = stripe.Invoice.list(api_key=self.api_key,
                                       expand=['data.payments'], **params)
        return [invoice for invoice in invoices.auto_paging_iter()
                if invoice_subscription_id(invoice) in active]

    def refund_invoices(self, invoices: Sequence[Any]) -> List[RefundResult]:
        """
        Refund the charges of invoices that Stripe collected.

        Invoices paid some other way, or already refunded, are skipped.
        Refunds that Stripe rejects are logged and left out of the results.
        """
        results = []
        for invoice in invoices:
            if field(invoice, 'collection_method') != 'charge_automatically':
                continue
            charge_id = self.invoice_charge_id(invoice)
            if not charge_id:
                continue
            charge = stripe.Charge.retrieve(charge_id, api_key=self.api_key)
            if field(charge, 'refunded'):
                logger.debug('Charge for invoice %s already refunded',
                             invoice['id'])
                continue
            try:
                stripe.Refund.create(charge=charge_id, api_key=self.api_key)
            except stripe.StripeError as e:
                logger.error('Could not refund invoice %s: %s',
                             invoice['id'], e)
                continue
            results.append(RefundResult.from_invoice(invoice))
        return results

    def invoice_charge_id(self, invoice: Any) -> Optional[str]:
        """
        Get the id of the charge that paid an invoice.

        Invoices list their payments under ``payments`` (expanded when the
        invoices are fetched). A payment made through a payment intent is
        resolved to the intent's latest charge. Invoices from older API
        versions carry the charge directly.
        """
        charge = object_id(field(invoice, 'charge'))
        if charge:
            return charge
        for invoice_payment in field(invoice, 'payments', 'data', default=[]):
            if field(invoice_payment, 'status', default='paid') != 'paid':
                continue
            payment = field(invoice_payment, 'payment')
            if field(payment, 'type') == 'charge':
                return object_id(field(payment, 'charge'))
            if field(payment, 'type') == 'payment_intent':
                intent = stripe.PaymentIntent.retrieve(
                    object_id(field(payment, 'payment_intent')),
                    api_key=self.api_key
                )
                return object_id(field(intent, 'latest_charge'))
        return None

    def finalize_invoice_without_auto_advance(self, invoice_id: str) \
            -> stripe.Invoice:
        """Finalize an invoice without Stripe trying to collect it."""
        return stripe.Invoice.finalize_invoice(invoice_id, auto_advance=False,
                                               api_key=self.api_key)

    def pay_invoice_out_of_band(self, invoice_id: str,
                                transaction_id: str) -> stripe.Invoice:
        """Record that an invoice was paid through PayPal."""
        self.update_invoice_metadata(invoice_id,
                                     {'paypalTransactionId': transaction_id})
        return stripe.Invoice.pay(invoice_id, paid_out_of_band=True,
                                  api_key=self.api_key)

    def update_invoice_metadata(self, invoice_id: str,
                                metadata: Dict[str, str]) -> stripe.Invoice:
        return stripe.Invoice.modify(invoice_id, metadata=metadata,
                                     api_key=self.api_key)

    def get_minimum_amount(self, currency: str) -> int:
        """
        Get the smallest amount that can be charged in ``currency``.

        Raises
        ------
        :class:`.StripeNoMinimumChargeAmountAvailableError`

        """
        try:
            return MINIMUM_AMOUNTS[currency.lower()]
        except KeyError as e:
            raise StripeNoMinimumChargeAmountAvailableError(
                f'No minimum charge amount for {currency}'
            ) from e


def invoice_subscription_id(invoice: Any) -> Optional[str]:
    """Get the id of the subscription an invoice was raised for, if any."""
    return object_id(field(invoice, 'parent', 'subscription_details',
                           'subscription')
                     or field(invoice, 'subscription'))


def _cache_key(uid: str) -> str:
    return f'stripe:customer:{uid}'


def init_app(app: Optional[LocalProxy] = None) -> None:
    """Set required configuration defaults for the application."""
    if app is not None:
        app.config.setdefault('STRIPE_API_KEY', 'sk_test_nope')
        app.config.setdefault('STRIPE_CUSTOMER_CACHE_TTL', 3600)
        app.config.setdefault('REDIS_HOST', 'localhost')
        app.config.setdefault('REDIS_PORT', '6379')
        app.config.setdefault('REDIS_DATABASE', '0')
