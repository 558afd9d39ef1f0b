"""Provides exceptions occurring with external services."""

from typing import Dict, Optional


class UnknownAccount(RuntimeError):
    """Account does not exist in the primary account store."""


class CustomerDeleted(RuntimeError):
    """The Stripe customer has been deleted."""


class StripeNoMinimumChargeAmountAvailableError(RuntimeError):
    """Currency does not have a minimum charge amount available."""


class PaypalManagerError(RuntimeError):
    """A billing agreement operation could not be carried out."""


class AmountExceedsPayPalCharLimitError(PaypalManagerError):
    """Amount has more digits than the PayPal NVP API accepts."""


class PaypalCustomerMultipleRecordsError(RuntimeError):
    """More than one active billing agreement is linked to an account."""


class PayPalClientError(RuntimeError):
    """PayPal did not acknowledge an NVP request."""

    def __init__(self, message: str, data: Optional[Dict[str, str]] = None,
                 error_code: Optional[int] = None) -> None:
        """Keep the decoded NVP response around for callers."""
        super(PayPalClientError, self).__init__(message)
        self.data = data or {}
        self.error_code = error_code
