"""Integration with the primary account store."""

import logging
from typing import List

from sqlalchemy.exc import OperationalError

from customer_accounts.domain import Account
from customer_accounts.services import database
from customer_accounts.services.database.models import DBAccount, DBDevice
from customer_accounts.services.exceptions import UnknownAccount

logger = logging.getLogger(__name__)


class AccountsDB(object):
    """Reads and deletes canonical account records and their devices."""

    def account(self, uid: str) -> Account:
        """
        Load the account with ``uid``.

        Raises
        ------
        :class:`.UnknownAccount`
            If there is no such account.
        IOError
            When there is a problem querying the database.

        """
        try:
            with database.transaction() as session:
                db_account = session.get(DBAccount, uid)
        except OperationalError as e:
            raise IOError('Could not query database: %s' % e) from e
        if db_account is None:
            raise UnknownAccount(f'No such account: {uid}')
        return _to_domain(db_account)

    def account_record(self, email: str) -> Account:
        """Load the account whose primary address is ``email``."""
        try:
            with database.transaction() as session:
                db_account = (
                    session.query(DBAccount)
                    .filter(DBAccount.email == email)
                    .first()
                )
        except OperationalError as e:
            raise IOError('Could not query database: %s' % e) from e
        if db_account is None:
            raise UnknownAccount('No account for that email')
        return _to_domain(db_account)

    def devices(self, uid: str) -> List[str]:
        """Get the ids of the devices registered to ``uid``."""
        try:
            with database.transaction() as session:
                rows = (
                    session.query(DBDevice.id)
                    .filter(DBDevice.uid == uid)
                    .order_by(DBDevice.created_at)
                    .all()
                )
        except OperationalError as e:
            raise IOError('Could not query database: %s' % e) from e
        return [row[0] for row in rows]

    def delete_account(self, uid: str) -> None:
        """
        Delete the account with ``uid`` along with its devices.

        Deleting an account that is already gone is not an error.
        """
        with database.transaction() as session:
            session.query(DBDevice) \
                .filter(DBDevice.uid == uid) \
                .delete(synchronize_session=False)
            deleted = session.query(DBAccount) \
                .filter(DBAccount.uid == uid) \
                .delete(synchronize_session=False)
            session.commit()
        logger.debug('Deleted %i account records for %s', deleted, uid)


def _to_domain(db_account: DBAccount) -> Account:
    return Account(
        uid=db_account.uid,
        email=db_account.email,
        email_verified=bool(db_account.email_verified),
        created_at=db_account.created_at
    )
