"""
Schedules HTTP tasks on Google Cloud Tasks.

A task is an HTTP POST with a JSON body that the queue delivers back to us,
retrying with backoff until it gets a 2xx response. Each delivery carries an
OIDC token for the configured service account, so that the callback can tell
that the request came from the queue.
"""

import json
import logging
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from google.cloud import tasks_v2
from werkzeug.local import LocalProxy

from customer_accounts.config import DeleteAccountConfig
from customer_accounts.domain import DeleteAccountTask, EnqueuedTask

logger = logging.getLogger(__name__)

T = TypeVar('T')


class TaskQueueClient(Generic[T]):
    """
    Creates tasks whose body is built from a payload of type ``T``.

    Parameters
    ----------
    config : :class:`.DeleteAccountConfig`
        Provides the OIDC audience and service account.
    to_payload : callable
        Turns a ``T`` into a JSON-serializable dict.
    client : :class:`google.cloud.tasks_v2.CloudTasksClient`
        Created on first use if not given.

    """

    def __init__(self, config: DeleteAccountConfig,
                 to_payload: Callable[[T], Dict[str, Any]],
                 client: Optional[tasks_v2.CloudTasksClient] = None) -> None:
        self.config = config
        self.to_payload = to_payload
        self._client = client

    @property
    def client(self) -> tasks_v2.CloudTasksClient:
        if self._client is None:
            self._client = tasks_v2.CloudTasksClient()
        return self._client

    def enqueue_task(self, queue_name: str, task_url: str,
                     task: T) -> EnqueuedTask:
        """
        Schedule delivery of ``task`` to ``task_url``.

        Parameters
        ----------
        queue_name : str
            Fully qualified queue name, e.g.
            ``projects/p/locations/l/queues/q``.
        task_url : str
        task : T

        Returns
        -------
        :class:`.EnqueuedTask`

        """
        body = json.dumps(self.to_payload(task)).encode('utf-8')
        created = self.client.create_task(parent=queue_name, task={
            'http_request': {
                'http_method': tasks_v2.HttpMethod.POST,
                'url': task_url,
                'headers': {'Content-Type': 'application/json'},
                'body': body,
                'oidc_token': {
                    'audience': self.config.oidc_audience,
                    'service_account_email':
                        self.config.oidc_service_account_email,
                },
            },
        })
        logger.debug('Created task %s', created.name)
        return EnqueuedTask(name=created.name)


class AccountTasks(object):
    """Schedules account-related tasks."""

    def __init__(self, config: DeleteAccountConfig,
                 queue: Optional[TaskQueueClient[DeleteAccountTask]] = None) \
            -> None:
        self.config = config
        self.queue = queue or TaskQueueClient(config,
                                              DeleteAccountTask.to_payload)

    def delete_account(self, task: DeleteAccountTask) -> EnqueuedTask:
        """Schedule the deletion of an account."""
        return self.queue.enqueue_task(self.config.queue_path,
                                       self.config.task_url, task)


def init_app(app: Optional[LocalProxy] = None) -> None:
    """Set required configuration defaults for the application."""
    if app is not None:
        app.config.setdefault('CLOUD_TASKS_PROJECT_ID', 'test')
        app.config.setdefault('CLOUD_TASKS_LOCATION_ID', 'us-central1')
        app.config.setdefault('CLOUD_TASKS_DELETE_ACCOUNTS_QUEUE',
                              'delete-accounts-queue')
