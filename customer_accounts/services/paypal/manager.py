"""Manages the lifecycle of PayPal billing agreements."""

from decimal import Decimal
import logging
from typing import Any, List, Optional, Sequence

from customer_accounts.domain import BillingAgreement, \
    BillingAgreementStatus, PaypalCustomer, PaypalCustomerStatus, RefundResult, \
    field
from customer_accounts.services.exceptions import \
    AmountExceedsPayPalCharLimitError, PayPalClientError, PaypalManagerError, \
    PaypalCustomerMultipleRecordsError
from .client import PayPalClient
from .customers import PaypalCustomerManager

logger = logging.getLogger(__name__)

PAYPAL_AMOUNT_DIGIT_LIMIT = 10
"""NVP amount fields accept at most this many digits, cents included."""

PAYPAL_BILLING_AGREEMENT_INVALID = 10201
"""NVP error code for an agreement that has already been cancelled."""

PAYPAL_TRANSACTION_METADATA_KEY = 'paypalTransactionId'
"""Invoice metadata key holding the PayPal transaction that paid it."""


class PayPalManager(object):
    """
    Creates, cancels, and looks up billing agreements.

    Nothing is cached here: every read goes to PayPal or to the
    :class:`.PaypalCustomerManager`.
    """

    def __init__(self, client: PayPalClient, stripe: Any,
                 paypal_customers: PaypalCustomerManager) -> None:
        self.client = client
        self.stripe = stripe
        self.paypal_customers = paypal_customers

    def get_or_create_billing_agreement_id(self, uid: str,
                                           require_existing: bool,
                                           token: Optional[str] = None) -> str:
        """
        Get the current billing agreement for ``uid``, or create one.

        Parameters
        ----------
        uid : str
        require_existing : bool
            If true, an existing agreement is expected (e.g. because the
            customer already has subscriptions) and none will be created.
        token : str
            Checkout token used to create a new agreement.

        Raises
        ------
        :class:`.PaypalManagerError`
            If there is no agreement and one cannot or must not be created.

        """
        billing_agreement_id = self.get_customer_billing_agreement_id(uid)
        if billing_agreement_id:
            return billing_agreement_id
        if not token:
            raise PaypalManagerError(
                'Must pay using PayPal token if customer has no existing '
                'billing agreement'
            )
        if require_existing:
            raise PaypalManagerError(
                'Expected to find an existing billing agreement for customer'
            )
        return self.create_billing_agreement(uid, token)

    def create_billing_agreement(self, uid: str, token: str) -> str:
        """Create a billing agreement from ``token`` and link it to ``uid``."""
        response = self.client.create_billing_agreement(token=token)
        customer = self.paypal_customers.create_paypal_customer(PaypalCustomer(
            uid=uid,
            billing_agreement_id=response['BILLINGAGREEMENTID'],
            status=PaypalCustomerStatus.ACTIVE,
            ended_at=None
        ))
        logger.info('Created billing agreement for %s', uid)
        return customer.billing_agreement_id

    def cancel_billing_agreement(self, billing_agreement_id: str) -> None:
        """
        Cancel a billing agreement.

        Cancelling an agreement that has already been cancelled is fine.
        """
        try:
            self.client.ba_update(billing_agreement_id=billing_agreement_id,
                                  cancel=True)
        except PayPalClientError as e:
            if e.error_code != PAYPAL_BILLING_AGREEMENT_INVALID:
                raise
            logger.info('Billing agreement %s was already cancelled',
                        billing_agreement_id)

    def get_billing_agreement(self, billing_agreement_id: str) \
            -> BillingAgreement:
        """Get the status and billing address of an agreement."""
        response = self.client.ba_update(
            billing_agreement_id=billing_agreement_id
        )
        if response.get('BILLINGAGREEMENTSTATUS') == 'Canceled':
            status = BillingAgreementStatus.CANCELLED
        else:
            status = BillingAgreementStatus.ACTIVE
        return BillingAgreement(
            status=status,
            city=response.get('CITY', ''),
            country_code=response.get('COUNTRYCODE', ''),
            first_name=response.get('FIRSTNAME', ''),
            last_name=response.get('LASTNAME', ''),
            state=response.get('STATE', ''),
            street=response.get('STREET', ''),
            street2=response.get('STREET2', ''),
            zip=response.get('ZIP', '')
        )

    def get_customer_billing_agreement_id(self, uid: str) -> Optional[str]:
        """
        Get the id of the billing agreement currently linked to ``uid``.

        Returns
        -------
        str or None
            None if the account has no billing agreement.

        Raises
        ------
        :class:`.PaypalCustomerMultipleRecordsError`
            If more than one agreement is linked to the account.

        """
        customers = self.paypal_customers.fetch_paypal_customers_by_uid(uid)
        if not customers:
            return None
        if len(customers) > 1:
            raise PaypalCustomerMultipleRecordsError(
                f'{len(customers)} billing agreements linked to {uid}'
            )
        return customers[0].billing_agreement_id

    def get_customer_paypal_subscriptions(self, customer_id: str) \
            -> List[Any]:
        """Get the active subscriptions that are billed through PayPal."""
        return [subscription for subscription
                in self.stripe.get_subscriptions(customer_id)
                if field(subscription, 'status') == 'active'
                and field(subscription, 'collection_method') == 'send_invoice']

    def get_checkout_token(self, currency_code: str) -> str:
        """Get a token the customer uses to approve a billing agreement."""
        response = self.client.set_express_checkout(
            currency_code=currency_code
        )
        return response['TOKEN']

    def get_paypal_amount_string_from_amount_in_cents(self,
                                                      amount_in_cents: int) \
            -> str:
        """
        Format an amount in cents the way the NVP API expects it.

        Raises
        ------
        :class:`.AmountExceedsPayPalCharLimitError`
            If the amount has more digits than PayPal accepts.

        """
        if len(str(abs(int(amount_in_cents)))) > PAYPAL_AMOUNT_DIGIT_LIMIT:
            raise AmountExceedsPayPalCharLimitError(
                f'Amount {amount_in_cents} exceeds the PayPal character limit'
            )
        amount = Decimal(int(amount_in_cents)) / Decimal(100)
        return str(amount.quantize(Decimal('0.01')))

    def process_invoice(self, invoice: Any) -> None:
        """Waive an invoice that is too small to charge; charge it otherwise."""
        minimum = self.stripe.get_minimum_amount(invoice['currency'])
        if invoice['amount_due'] < minimum:
            self.process_zero_invoice(invoice['id'])
            return
        customer = self.stripe.fetch_active_customer(invoice['customer'])
        self.process_non_zero_invoice(customer, invoice)

    def process_zero_invoice(self, invoice_id: str) -> Any:
        """Finalize an invoice without trying to collect payment for it."""
        return self.stripe.finalize_invoice_without_auto_advance(invoice_id)

    def process_non_zero_invoice(self, customer: Any, invoice: Any) -> None:
        """
        Charge an invoice to the customer's billing agreement.

        Raises
        ------
        :class:`.PaypalManagerError`
            If the customer has no billing agreement, or PayPal declines.

        """
        uid = field(customer, 'metadata', 'userid')
        billing_agreement_id = None
        if uid:
            billing_agreement_id = self.get_customer_billing_agreement_id(uid)
        if not billing_agreement_id:
            raise PaypalManagerError(
                f'Customer {customer["id"]} has no billing agreement'
            )
        if field(invoice, 'status') == 'draft':
            self.stripe.finalize_invoice_without_auto_advance(invoice['id'])

        attempt_count = field(invoice, 'attempt_count', default=0)
        idempotency_key = f'{invoice["id"]}-{attempt_count}'
        response = self.client.do_reference_transaction(
            amount=self.get_paypal_amount_string_from_amount_in_cents(
                invoice['amount_due']
            ),
            billing_agreement_id=billing_agreement_id,
            currency_code=invoice['currency'].upper(),
            invoice_number=invoice['id'],
            idempotency_key=idempotency_key
        )
        payment_status = response.get('PAYMENTSTATUS')
        transaction_id = response.get('TRANSACTIONID')
        if payment_status == 'Completed':
            self.stripe.pay_invoice_out_of_band(invoice['id'], transaction_id)
        elif payment_status == 'Pending':
            logger.info('Payment for invoice %s is pending', invoice['id'])
            self.stripe.update_invoice_metadata(
                invoice['id'],
                {PAYPAL_TRANSACTION_METADATA_KEY: transaction_id}
            )
        else:
            raise PaypalManagerError(
                f'Payment for invoice {invoice["id"]} failed: {payment_status}'
            )

    def refund_invoices(self, invoices: Sequence[Any]) -> List[RefundResult]:
        """
        Refund the invoices that were paid through PayPal.

        Invoices that Stripe collected itself are skipped. Refunds that PayPal
        declines are logged and left out of the results.
        """
        results = []
        for invoice in invoices:
            if field(invoice, 'collection_method') != 'send_invoice':
                continue
            transaction_id = field(invoice, 'metadata',
                                   PAYPAL_TRANSACTION_METADATA_KEY)
            if not transaction_id:
                logger.warning('Invoice %s has no PayPal transaction',
                               invoice['id'])
                continue
            try:
                self.client.refund_transaction(
                    transaction_id=transaction_id,
                    idempotency_key=invoice['id']
                )
            except PayPalClientError as e:
                logger.error('Could not refund invoice %s: %s',
                             invoice['id'], e)
                continue
            results.append(RefundResult.from_invoice(invoice))
        return results
