"""Provides routes for the task queue callbacks."""

from flask.json import jsonify
from flask import Blueprint, current_app, request

from customer_accounts import status, authorization
from customer_accounts.controllers import tasks
from customer_accounts.services import database

blueprint = Blueprint('tasks', __name__)


@blueprint.route('/status', methods=['GET'])
def ok() -> tuple:
    """Health check endpoint."""
    if not database.is_available():
        return jsonify({'status': 'database unavailable'}), \
            status.HTTP_503_SERVICE_UNAVAILABLE
    return jsonify({'status': 'ok'}), status.HTTP_200_OK


@blueprint.route('/v<int:version>/cloud-tasks/accounts/delete',
                 methods=['POST'])
@authorization.from_task_queue
def delete_account(version: int) -> tuple:
    """Delete the account named in a task."""
    if version != int(current_app.config['API_VERSION']):
        return jsonify({'reason': 'unknown API version'}), \
            status.HTTP_404_NOT_FOUND
    payload = request.get_json(force=True, silent=True)  # Ignore Content-Type.
    manager = current_app.extensions['account_delete']
    data, status_code, headers = tasks.delete_account(manager, payload)
    return jsonify(data), status_code, headers
