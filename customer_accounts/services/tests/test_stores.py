"""Tests for the account and OAuth stores, against an in-memory database."""

from unittest import TestCase

from customer_accounts.services.accounts_db import AccountsDB
from customer_accounts.services.database import models
from customer_accounts.services.exceptions import UnknownAccount
from customer_accounts.services.oauth_db import OAuthDB
from customer_accounts.services.tests.util import temporary_db

UID = 'f9916686c226415abd06ae550f073cec'
OTHER_UID = '0d0ba0e3b7a24bd9a6d8ee0ba2b7d541'


def populate(session) -> None:
    """Two accounts, each with a device, and some clients and tokens."""
    session.add(models.DBAccount(uid=UID, email='foo@example.com',
                                 email_verified=1, created_at=1000))
    session.add(models.DBAccount(uid=OTHER_UID, email='bar@example.com',
                                 email_verified=0, created_at=2000))
    session.add(models.DBDevice(id='d1', uid=UID, name='phone',
                                created_at=1001))
    session.add(models.DBDevice(id='d2', uid=UID, name='laptop',
                                created_at=1002))
    session.add(models.DBDevice(id='d3', uid=OTHER_UID, name='phone',
                                created_at=2001))
    session.add(models.DBOAuthClient(id='public', name='Public',
                                     public_client=1, can_grant=0))
    session.add(models.DBOAuthClient(id='trusted', name='Trusted',
                                     public_client=0, can_grant=1))
    session.add(models.DBOAuthClient(id='private', name='Private',
                                     public_client=0, can_grant=0))
    for client_id in ('public', 'trusted', 'private'):
        session.add(models.DBOAuthToken(token=f'{client_id}-{UID}',
                                        client_id=client_id, user_id=UID))
        session.add(models.DBOAuthToken(token=f'{client_id}-{OTHER_UID}',
                                        client_id=client_id,
                                        user_id=OTHER_UID))
    session.add(models.DBOAuthCode(code='code1', client_id='private',
                                   user_id=UID))
    session.commit()


class TestAccountsDB(TestCase):
    """Tests for :class:`.AccountsDB`."""

    def setUp(self):
        self.accounts = AccountsDB()

    def test_account(self):
        """Load an account by uid or by email."""
        with temporary_db() as session:
            populate(session)
            account = self.accounts.account(UID)
            self.assertEqual(account.email, 'foo@example.com')
            self.assertTrue(account.email_verified)
            self.assertEqual(self.accounts.account_record('bar@example.com'),
                             self.accounts.account(OTHER_UID))

    def test_unknown_account(self):
        """An account that is not there."""
        with temporary_db():
            with self.assertRaises(UnknownAccount):
                self.accounts.account(UID)
            with self.assertRaises(UnknownAccount):
                self.accounts.account_record('foo@example.com')

    def test_devices(self):
        """Devices are listed in the order they were added."""
        with temporary_db() as session:
            populate(session)
            self.assertEqual(self.accounts.devices(UID), ['d1', 'd2'])

    def test_delete_account(self):
        """The account and its devices are deleted, and nothing else."""
        with temporary_db() as session:
            populate(session)
            self.accounts.delete_account(UID)
            with self.assertRaises(UnknownAccount):
                self.accounts.account(UID)
            self.assertEqual(self.accounts.devices(UID), [])
            self.assertEqual(self.accounts.devices(OTHER_UID), ['d3'])

            # Again, as when a task is delivered twice.
            self.accounts.delete_account(UID)


class TestOAuthDB(TestCase):
    """Tests for :class:`.OAuthDB`."""

    def setUp(self):
        self.oauth = OAuthDB()

    def tokens(self, session, uid: str) -> set:
        return {token.client_id for token
                in session.query(models.DBOAuthToken)
                .filter(models.DBOAuthToken.user_id == uid)}

    def test_remove_tokens_and_codes(self):
        """Every token and code for the user is revoked."""
        with temporary_db() as session:
            populate(session)
            self.oauth.remove_tokens_and_codes(UID)
            self.assertEqual(self.tokens(session, UID), set())
            self.assertEqual(
                session.query(models.DBOAuthCode)
                .filter(models.DBOAuthCode.user_id == UID).count(),
                0
            )
            self.assertEqual(self.tokens(session, OTHER_UID),
                             {'public', 'trusted', 'private'})

    def test_remove_public_and_can_grant_tokens(self):
        """Only tokens for public and trusted clients are revoked."""
        with temporary_db() as session:
            populate(session)
            self.oauth.remove_public_and_can_grant_tokens(UID)
            self.assertEqual(self.tokens(session, UID), {'private'})
            self.assertEqual(self.tokens(session, OTHER_UID),
                             {'public', 'trusted', 'private'})
