"""Tests for :mod:`customer_accounts.domain` and :mod:`customer_accounts.config`."""

from unittest import TestCase

from customer_accounts.config import DeleteAccountConfig
from customer_accounts.domain import ByEmail, ById, DeleteAccountTask, \
    DeleteRequest, DeletionReason, RefundResult


class TestDeleteRequest(TestCase):
    """Tests for :class:`.DeleteRequest`."""

    def test_by_uid(self):
        request = DeleteRequest.by_uid('abc123', 'user_requested')
        self.assertEqual(request.target, ById('abc123'))
        self.assertEqual(request.reason, DeletionReason.USER_REQUESTED)

    def test_by_email(self):
        request = DeleteRequest.by_email('foo@example.com', 'fraud')
        self.assertEqual(request.target, ByEmail('foo@example.com'))

    def test_unknown_reason(self):
        """Reasons are checked when a request is made."""
        with self.assertRaises(ValueError):
            DeleteRequest.by_uid('abc123', 'because')


class TestDeleteAccountTask(TestCase):
    def test_payload(self):
        """The customer id is only sent when there is one."""
        self.assertEqual(
            DeleteAccountTask('abc123', 'fraud', 'cus_1').to_payload(),
            {'uid': 'abc123', 'customerId': 'cus_1', 'reason': 'fraud'}
        )
        self.assertEqual(DeleteAccountTask('abc123', 'fraud').to_payload(),
                         {'uid': 'abc123', 'reason': 'fraud'})


class TestRefundResult(TestCase):
    def test_from_invoice(self):
        """The price comes from the first line of the invoice."""
        result = RefundResult.from_invoice({
            'id': 'in_1', 'total': 1299, 'currency': 'usd',
            'lines': {'data': [{'price': {'id': 'price_1'}}]}
        })
        self.assertEqual(result, RefundResult('in_1', 'price_1', 1299, 'usd'))

    def test_without_lines(self):
        result = RefundResult.from_invoice({'id': 'in_1', 'total': 1299,
                                            'currency': 'usd'})
        self.assertIsNone(result.price_id)


class TestDeleteAccountConfig(TestCase):
    """Tests for :class:`.DeleteAccountConfig`."""

    def setUp(self):
        self.config = {
            'CLOUD_TASKS_PROJECT_ID': 'testo',
            'CLOUD_TASKS_LOCATION_ID': 'us-n',
            'CLOUD_TASKS_DELETE_ACCOUNTS_QUEUE': 'del0',
            'PUBLIC_URL': 'https://tasks.example.io/',
            'API_VERSION': '1',
            'CLOUD_TASKS_OIDC_AUDIENCE': 'you',
            'CLOUD_TASKS_OIDC_SERVICE_ACCOUNT_EMAIL': 'testo@iam.gcp.g.co',
        }

    def test_paths(self):
        config = DeleteAccountConfig.from_config(self.config)
        self.assertEqual(config.queue_path,
                         'projects/testo/locations/us-n/queues/del0')
        self.assertEqual(
            config.task_url,
            'https://tasks.example.io/v1/cloud-tasks/accounts/delete'
        )
        self.assertIsNone(config.refund_period_days)

    def test_refund_period(self):
        self.config['REFUND_PERIOD_DAYS'] = '34'
        config = DeleteAccountConfig.from_config(self.config)
        self.assertEqual(config.refund_period_days, 34)
