"""Tests for :mod:`customer_accounts.services.paypal.customers`."""

from unittest import TestCase

from customer_accounts.domain import PaypalCustomer, PaypalCustomerStatus
from customer_accounts.services.paypal.customers import PaypalCustomerManager
from customer_accounts.services.tests.util import temporary_db

UID = 'f9916686c226415abd06ae550f073cec'
OTHER_UID = '0d0ba0e3b7a24bd9a6d8ee0ba2b7d541'


class TestPaypalCustomerManager(TestCase):
    """Tests for :class:`.PaypalCustomerManager`."""

    def setUp(self):
        self.manager = PaypalCustomerManager()

    def test_create_and_fetch(self):
        """A new link is active until it ends."""
        with temporary_db():
            created = self.manager.create_paypal_customer(
                PaypalCustomer(uid=UID, billing_agreement_id='B-1')
            )
            self.assertIsNotNone(created.created_at)
            self.manager.create_paypal_customer(
                PaypalCustomer(uid=OTHER_UID, billing_agreement_id='B-2')
            )

            customers = self.manager.fetch_paypal_customers_by_uid(UID)
            self.assertEqual(customers, [created])

    def test_duplicate(self):
        """The same link cannot be stored twice."""
        with temporary_db():
            customer = PaypalCustomer(uid=UID, billing_agreement_id='B-1')
            self.manager.create_paypal_customer(customer)
            with self.assertRaises(RuntimeError):
                self.manager.create_paypal_customer(customer)

    def test_update_is_final(self):
        """Once a link has ended it is not changed again."""
        with temporary_db():
            self.manager.create_paypal_customer(
                PaypalCustomer(uid=UID, billing_agreement_id='B-1')
            )
            self.assertTrue(self.manager.update_paypal_customer(
                UID, 'B-1', PaypalCustomerStatus.CANCELLED, ended_at=2000
            ))
            self.assertFalse(self.manager.update_paypal_customer(
                UID, 'B-1', PaypalCustomerStatus.CANCELLED, ended_at=3000
            ))

            self.assertEqual(self.manager.fetch_paypal_customers_by_uid(UID),
                             [])
            everything = self.manager.fetch_all_paypal_customers_by_uid(UID)
            self.assertEqual(len(everything), 1)
            self.assertEqual(everything[0].status,
                             PaypalCustomerStatus.CANCELLED)
            self.assertEqual(everything[0].ended_at, 2000)

    def test_cancel_without_end_time(self):
        """A cancelled link gets an end time and cannot be re-activated."""
        with temporary_db():
            self.manager.create_paypal_customer(
                PaypalCustomer(uid=UID, billing_agreement_id='B-1')
            )
            self.assertTrue(self.manager.update_paypal_customer(
                UID, 'B-1', PaypalCustomerStatus.CANCELLED
            ))
            with self.assertRaises(ValueError):
                self.manager.update_paypal_customer(
                    UID, 'B-1', PaypalCustomerStatus.ACTIVE
                )
            [ended] = self.manager.fetch_all_paypal_customers_by_uid(UID)
            self.assertEqual(ended.status, PaypalCustomerStatus.CANCELLED)
            self.assertIsNotNone(ended.ended_at)

    def test_cancelled_link_is_final(self):
        """A link already cancelled is left alone, even without an end time."""
        with temporary_db():
            self.manager.create_paypal_customer(PaypalCustomer(
                uid=UID, billing_agreement_id='B-1',
                status=PaypalCustomerStatus.CANCELLED
            ))
            self.assertFalse(self.manager.update_paypal_customer(
                UID, 'B-1', PaypalCustomerStatus.CANCELLED, ended_at=2000
            ))
            [ended] = self.manager.fetch_all_paypal_customers_by_uid(UID)
            self.assertIsNone(ended.ended_at)

    def test_delete(self):
        """Every link for the account is deleted, and no others."""
        with temporary_db():
            for agreement in ('B-1', 'B-2'):
                self.manager.create_paypal_customer(
                    PaypalCustomer(uid=UID, billing_agreement_id=agreement)
                )
            self.manager.create_paypal_customer(
                PaypalCustomer(uid=OTHER_UID, billing_agreement_id='B-3')
            )
            self.assertEqual(self.manager.delete_paypal_customers_by_uid(UID),
                             2)
            self.assertEqual(self.manager.delete_paypal_customers_by_uid(UID),
                             0)
            self.assertEqual(
                len(self.manager.fetch_all_paypal_customers_by_uid(OTHER_UID)),
                1
            )
