"""Defines the core data structures for the customer accounts service."""

from typing import Any, Dict, NamedTuple, Optional, Union


class DeletionReason(object):
    """Why an account is being deleted."""

    USER_REQUESTED = 'user_requested'
    UNVERIFIED_ACCOUNT = 'unverified_account'
    FRAUD = 'fraud'
    OTHER_SYSTEM_INITIATED = 'other_system_initiated'
    REASONS = (
        USER_REQUESTED,
        UNVERIFIED_ACCOUNT,
        FRAUD,
        OTHER_SYSTEM_INITIATED
    )

    @classmethod
    def validate(cls, reason: str) -> str:
        """Make sure that ``reason`` is one of :attr:`.REASONS`."""
        if reason not in cls.REASONS:
            raise ValueError(f'Unknown deletion reason: {reason}')
        return reason


class Account(NamedTuple):
    """A customer account in the primary account store."""

    uid: str
    """Hex-encoded unique identifier of the account."""

    email: str
    """Primary email address."""

    email_verified: bool = False
    created_at: Optional[int] = None
    """Milliseconds since the epoch."""


class ById(NamedTuple):
    """Identifies the account to delete by its uid."""

    uid: str


class ByEmail(NamedTuple):
    """Identifies the account to delete by its primary email address."""

    email: str


class DeleteRequest(NamedTuple):
    """A request to delete an account."""

    target: Union[ById, ByEmail]
    """The account to delete. Resolved to a uid before anything is deleted."""

    reason: str
    """Must be one of :attr:`DeletionReason.REASONS`."""

    @classmethod
    def by_uid(cls, uid: str, reason: str) -> 'DeleteRequest':
        """Request deletion of the account with ``uid``."""
        return cls(target=ById(uid), reason=DeletionReason.validate(reason))

    @classmethod
    def by_email(cls, email: str, reason: str) -> 'DeleteRequest':
        """Request deletion of the account with primary address ``email``."""
        return cls(target=ByEmail(email),
                   reason=DeletionReason.validate(reason))


class DeleteAccountTask(NamedTuple):
    """Payload of a deletion task delivered back to us by the task queue."""

    uid: str
    reason: str
    customer_id: Optional[str] = None
    """Stripe customer, if the account had one when the task was created."""

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation of the task body."""
        payload: Dict[str, Any] = {'uid': self.uid}
        if self.customer_id:
            payload['customerId'] = self.customer_id
        payload['reason'] = self.reason
        return payload


class EnqueuedTask(NamedTuple):
    """Handle for a task that has been scheduled on the task queue."""

    name: str
    """Fully qualified task name assigned by the queue service."""


class BillingAgreementStatus(object):
    """Status of a PayPal billing agreement."""

    ACTIVE = 'active'
    CANCELLED = 'cancelled'


class BillingAgreement(NamedTuple):
    """Details of a PayPal billing agreement, as reported by PayPal."""

    status: str
    """One of the :class:`BillingAgreementStatus` values."""

    city: str = ''
    country_code: str = ''
    first_name: str = ''
    last_name: str = ''
    state: str = ''
    street: str = ''
    street2: str = ''
    zip: str = ''


class PaypalCustomerStatus(object):
    """Status of the link between an account and a billing agreement."""

    ACTIVE = 'active'
    CANCELLED = 'cancelled'


class PaypalCustomer(NamedTuple):
    """Links an account to a PayPal billing agreement."""

    uid: str
    billing_agreement_id: str
    status: str = PaypalCustomerStatus.ACTIVE
    created_at: Optional[int] = None
    """Milliseconds since the epoch."""

    ended_at: Optional[int] = None
    """Set when the agreement is cancelled; the record is final after that."""


class RefundResult(NamedTuple):
    """A successfully refunded invoice."""

    invoice_id: str
    price_id: Optional[str]
    total: int
    """Refunded amount in the smallest currency unit."""

    currency: str

    @classmethod
    def from_invoice(cls, invoice: Any) -> 'RefundResult':
        """Describe the refund of a Stripe invoice."""
        price_id = field(invoice, 'lines', 'data', 0, 'price', 'id') \
            or object_id(field(invoice, 'lines', 'data', 0, 'pricing',
                               'price_details', 'price'))
        return cls(invoice_id=invoice['id'], price_id=price_id,
                   total=invoice['total'], currency=invoice['currency'])


def field(obj: Any, *path: Union[str, int], default: Any = None) -> Any:
    """
    Read a nested value from a Stripe object or a plain dict.

    Stripe objects are not dicts and have no ``get``, but item access works on
    both. Expanded references (objects in place of ids) are returned as-is.

    Returns
    -------
    object
        ``default`` if any key along ``path`` is missing or null.

    """
    for key in path:
        if obj is None:
            return default
        try:
            obj = obj[key]
        except (KeyError, IndexError, TypeError):
            return default
    return default if obj is None else obj


def object_id(value: Any) -> Optional[str]:
    """Get the id of a Stripe reference, whether or not it was expanded."""
    if value is None or isinstance(value, str):
        return value
    return field(value, 'id')
