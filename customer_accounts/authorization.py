"""Only lets the task queue call the task callbacks."""

from functools import wraps
import logging
from flask import request, current_app, jsonify

from typing import Any, Callable, Dict, Tuple

from customer_accounts import status
from customer_accounts.services import oidc

logger = logging.getLogger(__name__)

INVALID_TOKEN = {'reason': 'Invalid authorization token'}
INVALID_ACCOUNT = {'reason': 'Token not issued for the task queue'}


def from_task_queue(func: Callable[..., Any]) -> Callable[..., Any]:
    """Require an OIDC token for the task queue's service account."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Tuple[Any, int, Dict[Any, Any]]:
        """Check the bearer token before executing the method."""
        config = current_app.config
        header = request.headers.get('Authorization', '')
        if not header.startswith('Bearer '):
            return jsonify(INVALID_TOKEN), status.HTTP_401_UNAUTHORIZED, {}
        try:
            idinfo = oidc.verify_token(config['CLOUD_TASKS_OIDC_AUDIENCE'],
                                       header[len('Bearer '):].strip())
        except ValueError as e:
            logger.warning('Rejected task token: %s', e)
            return jsonify(INVALID_TOKEN), status.HTTP_401_UNAUTHORIZED, {}
        if not idinfo:
            return jsonify(INVALID_TOKEN), status.HTTP_401_UNAUTHORIZED, {}
        email = oidc.email_from_idinfo(idinfo)
        if email != config['CLOUD_TASKS_OIDC_SERVICE_ACCOUNT_EMAIL']:
            logger.warning('Rejected task token for %s', email)
            return jsonify(INVALID_ACCOUNT), status.HTTP_401_UNAUTHORIZED, {}
        return func(*args, **kwargs)
    return wrapper
