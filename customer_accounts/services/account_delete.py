"""
Deletes accounts and everything that depends on them.

An account has state in several independent systems: the primary account
store, the OAuth token store, the push and pushbox services, Stripe, and
PayPal. No transaction spans all of them, so deletion is a sequence of steps
that can each be repeated safely. If a step fails, the whole sequence is run
again later by the task queue; nothing is rolled back.

Deletion happens either directly, through :meth:`AccountDeleteManager.quick_delete`,
or out of band, through a task created with
:meth:`AccountDeleteManager.enqueue` and delivered back to
:meth:`AccountDeleteManager.delete_account_from_task`.
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, List, Mapping, Optional

from customer_accounts.app_logging import activity_event
from customer_accounts.config import DeleteAccountConfig
from customer_accounts.domain import ByEmail, ById, DeleteAccountTask, \
    DeleteRequest, DeletionReason, EnqueuedTask, PaypalCustomerStatus, \
    RefundResult
from customer_accounts.services.accounts_db import AccountsDB
from customer_accounts.services.exceptions import UnknownAccount
from customer_accounts.services.metrics import StatsdMetrics
from customer_accounts.services.oauth_db import OAuthDB
from customer_accounts.services.paypal import PaypalCustomerManager, \
    PayPalManager
from customer_accounts.services.push import PushNotifier
from customer_accounts.services.pushbox import PushboxClient
from customer_accounts.services.stripe_manager import StripeManager
from customer_accounts.services.tasks import AccountTasks

logger = logging.getLogger(__name__)

ENQUEUE_SUCCESS = 'cloud-tasks.account-delete.enqueue.success'
ENQUEUE_FAILURE = 'cloud-tasks.account-delete.enqueue.failure'
PUSHBOX_FAILURE = 'account.delete.pushbox.failure'


class AccountDeleteManager(object):
    """Orchestrates the deletion of accounts."""

    def __init__(self, accounts: AccountsDB, oauth: OAuthDB,
                 push: PushNotifier, pushbox: PushboxClient,
                 stripe: StripeManager, paypal: PayPalManager,
                 paypal_customers: PaypalCustomerManager,
                 account_tasks: AccountTasks, statsd: StatsdMetrics,
                 config: DeleteAccountConfig) -> None:
        self.accounts = accounts
        self.oauth = oauth
        self.push = push
        self.pushbox = pushbox
        self.stripe = stripe
        self.paypal = paypal
        self.paypal_customers = paypal_customers
        self.account_tasks = account_tasks
        self.statsd = statsd
        self.config = config

    def resolve_uid(self, request: DeleteRequest) -> str:
        """
        Get the uid of the account that ``request`` refers to.

        Raises
        ------
        :class:`.UnknownAccount`
            If the request is by email and no account has that address.

        """
        if isinstance(request.target, ById):
            return request.target.uid
        if isinstance(request.target, ByEmail):
            return self.accounts.account_record(request.target.email).uid
        raise TypeError(f'Cannot resolve {request.target!r}')

    def enqueue(self, request: DeleteRequest) -> EnqueuedTask:
        """
        Schedule the deletion of an account on the task queue.

        The Stripe customer, if there is one, is looked up now and carried
        in the task so that refunds can still be made after the link to it
        is gone.

        Returns
        -------
        :class:`.EnqueuedTask`

        """
        try:
            uid = self.resolve_uid(request)
            customer = self.stripe.fetch_customer(uid)
            task = DeleteAccountTask(
                uid=uid,
                reason=request.reason,
                customer_id=customer['id'] if customer else None
            )
            enqueued = self.account_tasks.delete_account(task)
        except Exception:
            self.statsd.increment(ENQUEUE_FAILURE)
            raise
        self.statsd.increment(ENQUEUE_SUCCESS)
        logger.info('Scheduled deletion of %s as %s', uid, enqueued.name)
        return enqueued

    def quick_delete(self, request: DeleteRequest) -> None:
        """
        Delete an account right away, or schedule it if that fails.

        Only deletions that the user asked for are eligible.

        Raises
        ------
        ValueError
            If the request is not a user requested deletion.

        """
        if request.reason != DeletionReason.USER_REQUESTED:
            raise ValueError('quickDelete only supports user requested '
                             'deletions')
        uid = self.resolve_uid(request)
        try:
            self.delete_account(uid, request.reason)
        except Exception as e:
            logger.warning('Could not delete %s right away, scheduling it: %s',
                           uid, e)
            self.enqueue(DeleteRequest(ById(uid), request.reason))

    def delete_account(self, uid: str, reason: str,
                       customer_id: Optional[str] = None) -> None:
        """
        Delete an account and everything that depends on it.

        Every step may be repeated. If the account is no longer in the
        primary store, the payment providers are still cleaned up and
        nothing else is done.

        Parameters
        ----------
        uid : str
        reason : str
            One of :attr:`DeletionReason.REASONS`.
        customer_id : str
            Stripe customer recorded when the deletion was scheduled.

        """
        logger.info('Deleting %s (%s)', uid, reason)
        if customer_id:
            logger.debug('%s had Stripe customer %s', uid, customer_id)
        self.stripe.remove_customer(uid)
        self.stripe.remove_cached_customer(uid)

        agreements = self.paypal_customers.fetch_all_paypal_customers_by_uid(
            uid
        )
        for customer in agreements:
            if customer.status == PaypalCustomerStatus.ACTIVE:
                self.paypal.cancel_billing_agreement(
                    customer.billing_agreement_id
                )
        self.paypal_customers.delete_paypal_customers_by_uid(uid)

        try:
            self.accounts.account(uid)
        except UnknownAccount:
            logger.info('Account %s is already gone', uid)
            return
        self.push.notify_account_destroyed(uid, self.accounts.devices(uid))

        try:
            self.pushbox.delete_account(uid)
        except Exception as e:
            logger.error('Could not delete pushbox data for %s: %s', uid, e)
            self.statsd.increment(PUSHBOX_FAILURE)

        self.oauth.remove_tokens_and_codes(uid)
        self.accounts.delete_account(uid)
        activity_event(uid, 'account.deleted')

    def refund_subscriptions(self, reason: str,
                             customer_id: Optional[str] = None,
                             refund_period_in_days: Optional[int] = None) \
            -> List[RefundResult]:
        """
        Refund what an account paid for subscriptions that are still active.

        Only accounts deleted because they were never verified are refunded.

        Parameters
        ----------
        reason : str
        customer_id : str
        refund_period_in_days : int
            Only invoices created in this many days are refunded. All paid
            invoices are refunded if not given.

        Returns
        -------
        list
            A :class:`.RefundResult` for each refunded invoice.

        """
        if reason != DeletionReason.UNVERIFIED_ACCOUNT or not customer_id:
            return []
        since = None
        if refund_period_in_days is not None:
            since = datetime.now(tz=timezone.utc) \
                - timedelta(days=refund_period_in_days)
        invoices = self.stripe.fetch_invoices_for_active_subscriptions(
            customer_id, 'paid', since
        )
        if not invoices:
            return []

        # Payments for one subscription may be split across both providers.
        results: List[RefundResult] = []
        errors: List[Exception] = []
        for refund in (self.stripe.refund_invoices,
                       self.paypal.refund_invoices):
            try:
                results.extend(refund(invoices) or [])
            except Exception as e:
                errors.append(e)
        if errors:
            raise errors[0]
        return results

    def delete_account_from_task(self, payload: Mapping[str, Any]) -> None:
        """
        Carry out a deletion task delivered by the task queue.

        Raises
        ------
        ValueError
            If the payload is not a valid deletion task.

        """
        uid = payload.get('uid')
        if not uid:
            raise ValueError('Task payload has no uid')
        reason = DeletionReason.validate(payload.get('reason'))
        customer_id = payload.get('customerId')
        self.refund_subscriptions(reason, customer_id,
                                  self.config.refund_period_days)
        self.delete_account(uid, reason, customer_id)
