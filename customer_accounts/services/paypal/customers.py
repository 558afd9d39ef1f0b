"""Persistence of the links between accounts and PayPal billing agreements."""

import logging
from typing import List, Optional

from sqlalchemy.exc import OperationalError

from customer_accounts.domain import PaypalCustomer, PaypalCustomerStatus
from customer_accounts.services import database
from customer_accounts.services.database.models import DBPaypalCustomer

logger = logging.getLogger(__name__)


class PaypalCustomerManager(object):
    """Stores :class:`.PaypalCustomer` records."""

    def create_paypal_customer(self, customer: PaypalCustomer) \
            -> PaypalCustomer:
        """
        Create a new record for a :class:`.PaypalCustomer`.

        Parameters
        ----------
        customer : :class:`.PaypalCustomer`
            ``created_at`` is set to the current time if it is not given.

        Raises
        ------
        RuntimeError
            When the record cannot be stored.

        """
        created_at = customer.created_at or database.now()
        db_customer = DBPaypalCustomer(
            uid=customer.uid,
            billing_agreement_id=customer.billing_agreement_id,
            status=customer.status,
            created_at=created_at,
            ended_at=customer.ended_at
        )
        try:
            with database.transaction() as session:
                session.add(db_customer)
                session.commit()
        except Exception as e:
            raise RuntimeError('Could not store PayPal customer: %s' % e) \
                from e
        return customer._replace(created_at=created_at)

    def fetch_paypal_customers_by_uid(self, uid: str) -> List[PaypalCustomer]:
        """Get the active billing agreement links for ``uid``."""
        return [customer for customer
                in self.fetch_all_paypal_customers_by_uid(uid)
                if customer.status == PaypalCustomerStatus.ACTIVE
                and customer.ended_at is None]

    def fetch_all_paypal_customers_by_uid(self, uid: str) \
            -> List[PaypalCustomer]:
        """Get every billing agreement link for ``uid``, including ended ones."""
        try:
            with database.transaction() as session:
                rows = (
                    session.query(DBPaypalCustomer)
                    .filter(DBPaypalCustomer.uid == uid)
                    .order_by(DBPaypalCustomer.created_at)
                    .all()
                )
        except OperationalError as e:
            raise IOError('Could not query database: %s' % e) from e
        return [PaypalCustomer(
            uid=row.uid,
            billing_agreement_id=row.billing_agreement_id,
            status=row.status,
            created_at=row.created_at,
            ended_at=row.ended_at
        ) for row in rows]

    def update_paypal_customer(self, uid: str, billing_agreement_id: str,
                               status: str,
                               ended_at: Optional[int] = None) -> bool:
        """
        Cancel a billing agreement link.

        Links only ever go from active to cancelled. Cancelled links are final
        and are left untouched.

        Parameters
        ----------
        status : str
            Must be :attr:`.PaypalCustomerStatus.CANCELLED`.
        ended_at : int
            When the link ended, in milliseconds since the epoch. Defaults to
            the current time.

        Returns
        -------
        bool
            True if a record was updated.

        Raises
        ------
        ValueError
            If ``status`` would re-activate a link.

        """
        if status != PaypalCustomerStatus.CANCELLED:
            raise ValueError(
                f'Cannot move a billing agreement link to {status}'
            )
        if ended_at is None:
            ended_at = database.now()
        with database.transaction() as session:
            updated = session.query(DBPaypalCustomer) \
                .filter(DBPaypalCustomer.uid == uid) \
                .filter(DBPaypalCustomer.billing_agreement_id
                        == billing_agreement_id) \
                .filter(DBPaypalCustomer.status
                        == PaypalCustomerStatus.ACTIVE) \
                .filter(DBPaypalCustomer.ended_at.is_(None)) \
                .update({'status': status, 'ended_at': ended_at},
                        synchronize_session=False)
            session.commit()
        return bool(updated)

    def delete_paypal_customers_by_uid(self, uid: str) -> int:
        """Delete every billing agreement link for ``uid``."""
        with database.transaction() as session:
            deleted = session.query(DBPaypalCustomer) \
                .filter(DBPaypalCustomer.uid == uid) \
                .delete(synchronize_session=False)
            session.commit()
        logger.debug('Deleted %i PayPal customer records for %s', deleted, uid)
        return int(deleted)
