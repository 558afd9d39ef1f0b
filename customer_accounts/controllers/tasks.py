"""Handles tasks delivered by the task queue."""

import logging
from typing import Any, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError

from customer_accounts import status
from customer_accounts.domain import DeletionReason
from customer_accounts.services.account_delete import AccountDeleteManager

logger = logging.getLogger(__name__)

INVALID_TASK = {'reason': 'Not a valid account deletion task'}
DELETE_FAILED = {'reason': 'Account deletion failed'}


class DeleteAccountTaskPayload(BaseModel):
    """Body of an account deletion task."""

    uid: str = Field(min_length=1)
    reason: str
    customer_id: Optional[str] = Field(default=None, alias='customerId')


def delete_account(manager: AccountDeleteManager,
                   payload: Any) -> Tuple[dict, int, dict]:
    """
    Delete the account named in a task.

    A failure is reported with a 500 so that the queue delivers the task
    again.

    Parameters
    ----------
    manager : :class:`.AccountDeleteManager`
    payload : dict
        Decoded JSON body of the task.

    Returns
    -------
    dict
        Response data.
    int
        An HTTP status code.
    dict
        Some extra headers to add to the response.

    """
    try:
        task = DeleteAccountTaskPayload.model_validate(payload)
        DeletionReason.validate(task.reason)
    except (ValidationError, ValueError) as e:
        logger.error('Invalid deletion task: %s', e)
        return INVALID_TASK, status.HTTP_400_BAD_REQUEST, {}

    wire = {'uid': task.uid, 'reason': task.reason}
    if task.customer_id:
        wire['customerId'] = task.customer_id
    try:
        manager.delete_account_from_task(wire)
    except Exception as e:
        logger.exception('Could not delete %s: %s', task.uid, e)
        return DELETE_FAILED, status.HTTP_500_INTERNAL_SERVER_ERROR, {}
    return {'uid': task.uid}, status.HTTP_200_OK, {}
