"""Database models for the account, OAuth, and payment link tables."""

from sqlalchemy import BigInteger, Column, ForeignKey, Integer, String, \
    text
from flask_sqlalchemy import SQLAlchemy

db: SQLAlchemy = SQLAlchemy()


class DBAccount(db.Model):  # type: ignore
    """
    Canonical account record.

    +----------------+--------------+------+-----+---------+
    | Field          | Type         | Null | Key | Default |
    +----------------+--------------+------+-----+---------+
    | uid            | varchar(32)  | NO   | PRI | NULL    |
    | email          | varchar(255) | NO   | UNI | NULL    |
    | emailVerified  | int(1)       | NO   |     | 0       |
    | createdAt      | bigint(20)   | NO   |     | 0       |
    +----------------+--------------+------+-----+---------+
    """

    __tablename__ = 'accounts'

    uid = Column(String(32), primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    email_verified = Column('emailVerified', Integer, nullable=False,
                            server_default=text("'0'"))
    created_at = Column('createdAt', BigInteger, nullable=False,
                        server_default=text("'0'"))


class DBDevice(db.Model):  # type: ignore
    """A device registered to an account; the target of push messages."""

    __tablename__ = 'devices'

    id = Column(String(32), primary_key=True)
    uid = Column(ForeignKey('accounts.uid'), nullable=False, index=True)
    name = Column(String(255))
    push_callback = Column('pushCallback', String(255))
    created_at = Column('createdAt', BigInteger)


class DBOAuthClient(db.Model):  # type: ignore
    """A registered OAuth client."""

    __tablename__ = 'clients'

    id = Column(String(16), primary_key=True)
    name = Column(String(255), nullable=False)
    public_client = Column('publicClient', Integer, nullable=False,
                           server_default=text("'0'"))
    can_grant = Column('canGrant', Integer, nullable=False,
                       server_default=text("'0'"))


class DBOAuthToken(db.Model):  # type: ignore
    """An access or refresh token issued to a client on behalf of a user."""

    __tablename__ = 'tokens'

    token = Column(String(64), primary_key=True)
    """Hash of the token."""
    client_id = Column('clientId', ForeignKey('clients.id'), nullable=False)
    user_id = Column('userId', String(32), nullable=False, index=True)
    token_type = Column('type', String(16), nullable=False,
                        server_default=text("'access'"))
    created_at = Column('createdAt', BigInteger)


class DBOAuthCode(db.Model):  # type: ignore
    """An authorization grant code."""

    __tablename__ = 'codes'

    code = Column(String(64), primary_key=True)
    client_id = Column('clientId', ForeignKey('clients.id'), nullable=False)
    user_id = Column('userId', String(32), nullable=False, index=True)
    created_at = Column('createdAt', BigInteger)


class DBPaypalCustomer(db.Model):  # type: ignore
    """Links an account to a PayPal billing agreement."""

    __tablename__ = 'paypalCustomers'

    uid = Column(String(32), primary_key=True)
    billing_agreement_id = Column('billingAgreementId', String(19),
                                  primary_key=True)
    status = Column(String(9), nullable=False)
    created_at = Column('createdAt', BigInteger, nullable=False)
    ended_at = Column('endedAt', BigInteger)


class DBAccountCustomer(db.Model):  # type: ignore
    """Links an account to a Stripe customer."""

    __tablename__ = 'accountCustomers'

    uid = Column(String(32), primary_key=True)
    stripe_customer_id = Column('stripeCustomerId', String(32))
    created_at = Column('createdAt', BigInteger, nullable=False)
    updated_at = Column('updatedAt', BigInteger, nullable=False)
