"""A thin client for the legacy PayPal NVP API."""

import logging
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl

import requests

from customer_accounts.services.exceptions import PayPalClientError

logger = logging.getLogger(__name__)

NVP_VERSION = '204'
"""Version of the NVP API that requests are made against."""

SUCCESS_ACKS = ('Success', 'SuccessWithWarning')


class PayPalClient(object):
    """
    Makes NVP calls to PayPal.

    Every request carries the API credentials and is a form-encoded POST;
    every response is a form-encoded set of name/value pairs with an ``ACK``
    field that tells us whether the call succeeded.
    """

    def __init__(self, nvp_url: str, user: str, pwd: str, signature: str,
                 return_url: str = '', cancel_url: str = '') -> None:
        """Create a new HTTP session."""
        self.nvp_url = nvp_url
        self.return_url = return_url
        self.cancel_url = cancel_url
        self._credentials = {'USER': user, 'PWD': pwd, 'SIGNATURE': signature}
        self._session = requests.Session()
        self._adapter = requests.adapters.HTTPAdapter(max_retries=2)
        self._session.mount('https://', self._adapter)
        logger.debug('New PayPalClient for %s', nvp_url)

    def create_billing_agreement(self, token: str) -> Dict[str, str]:
        """Create a billing agreement from a checkout ``token``."""
        return self._request('CreateBillingAgreement', {'TOKEN': token})

    def ba_update(self, billing_agreement_id: str,
                  cancel: bool = False) -> Dict[str, str]:
        """
        Get the details of a billing agreement, or cancel it.

        Parameters
        ----------
        billing_agreement_id : str
        cancel : bool
            If true, the agreement is cancelled.

        Returns
        -------
        dict
            The agreement status along with the billing address.

        """
        data = {'REFERENCEID': billing_agreement_id}
        if cancel:
            data['BILLINGAGREEMENTSTATUS'] = 'Canceled'
        return self._request('BillAgreementUpdate', data)

    def set_express_checkout(self, currency_code: str) -> Dict[str, str]:
        """Start a checkout that will set up a billing agreement."""
        return self._request('SetExpressCheckout', {
            'PAYMENTREQUEST_0_AMT': '0',
            'PAYMENTREQUEST_0_CURRENCYCODE': currency_code,
            'PAYMENTREQUEST_0_PAYMENTACTION': 'AUTHORIZATION',
            'L_BILLINGTYPE0': 'MerchantInitiatedBilling',
            'NOSHIPPING': '1',
            'RETURNURL': self.return_url,
            'CANCELURL': self.cancel_url,
        })

    def do_reference_transaction(self, amount: str, billing_agreement_id: str,
                                 currency_code: str, invoice_number: str,
                                 idempotency_key: str) -> Dict[str, str]:
        """Charge ``amount`` against a billing agreement."""
        return self._request('DoReferenceTransaction', {
            'AMT': amount,
            'CURRENCYCODE': currency_code,
            'CUSTOM': idempotency_key,
            'INVNUM': invoice_number,
            'MSGSUBID': idempotency_key,
            'PAYMENTACTION': 'Sale',
            'PAYMENTTYPE': 'instant',
            'REFERENCEID': billing_agreement_id,
        })

    def refund_transaction(self, transaction_id: str, idempotency_key: str,
                           amount: Optional[str] = None) -> Dict[str, str]:
        """Refund a transaction; in full unless ``amount`` is given."""
        data = {
            'TRANSACTIONID': transaction_id,
            'MSGSUBID': idempotency_key,
            'REFUNDTYPE': 'Partial' if amount else 'Full',
        }
        if amount:
            data['AMT'] = amount
        return self._request('RefundTransaction', data)

    def _request(self, method: str, data: Dict[str, Any]) -> Dict[str, str]:
        payload = dict(self._credentials, METHOD=method, VERSION=NVP_VERSION)
        payload.update(data)
        logger.debug('PayPal NVP %s', method)
        response = self._session.post(self.nvp_url, data=payload)
        if not response.ok:
            raise IOError('PayPal responded with status %i'
                          % response.status_code)
        decoded = dict(parse_qsl(response.text))
        if decoded.get('ACK') not in SUCCESS_ACKS:
            error_code = decoded.get('L_ERRORCODE0')
            message = decoded.get('L_LONGMESSAGE0', 'PayPal request failed')
            raise PayPalClientError(
                f'{method}: {message}',
                data=decoded,
                error_code=(int(error_code)
                            if error_code and error_code.isdigit() else None)
            )
        return decoded
