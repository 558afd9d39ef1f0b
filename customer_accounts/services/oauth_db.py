"""Integration with the OAuth token store."""

import logging

from sqlalchemy import or_, select

from customer_accounts.services import database
from customer_accounts.services.database.models import DBOAuthClient, \
    DBOAuthCode, DBOAuthToken

logger = logging.getLogger(__name__)


class OAuthDB(object):
    """Revokes the tokens and grant codes that clients hold for a user."""

    def remove_tokens_and_codes(self, uid: str) -> None:
        """Revoke every token and authorization code issued for ``uid``."""
        with database.transaction() as session:
            tokens = session.query(DBOAuthToken) \
                .filter(DBOAuthToken.user_id == uid) \
                .delete(synchronize_session=False)
            codes = session.query(DBOAuthCode) \
                .filter(DBOAuthCode.user_id == uid) \
                .delete(synchronize_session=False)
            session.commit()
        logger.debug('Removed %i tokens and %i codes for %s',
                     tokens, codes, uid)

    def remove_public_and_can_grant_tokens(self, uid: str) -> None:
        """Revoke tokens that ``uid`` granted to public or trusted clients."""
        clients = select(DBOAuthClient.id).where(
            or_(DBOAuthClient.public_client == 1, DBOAuthClient.can_grant == 1)
        )
        with database.transaction() as session:
            tokens = session.query(DBOAuthToken) \
                .filter(DBOAuthToken.user_id == uid) \
                .filter(DBOAuthToken.client_id.in_(clients)) \
                .delete(synchronize_session=False)
            session.commit()
        logger.debug('Removed %i public/can-grant tokens for %s', tokens, uid)
