"""Tests for the task queue callback."""

from customer_accounts.tests.conftest import AUDIENCE, SERVICE_ACCOUNT

UID = 'f9916686c226415abd06ae550f073cec'
DELETE_URL = '/v1/cloud-tasks/accounts/delete'
HEADERS = {'Authorization': 'Bearer AnythingSinceMocked'}

TASK = {'uid': UID, 'customerId': 'cus_997', 'reason': 'unverified_account'}


def mock_token(mocker, email=SERVICE_ACCOUNT):
    return mocker.patch(
        'customer_accounts.authorization.oidc.verify_token',
        return_value={'whence': 'mocked in ' + __file__, 'email': email,
                      'email_verified': True}
    )


def test_status(client):
    res = client.get('/status')
    assert res.status_code == 200
    assert res.get_json() == {'status': 'ok'}


def test_delete_account(mocker, client, manager):
    verify = mock_token(mocker)
    res = client.post(DELETE_URL, json=TASK, headers=HEADERS)
    assert res.status_code == 200
    assert res.get_json() == {'uid': UID}
    manager.delete_account_from_task.assert_called_once_with(TASK)
    verify.assert_called_once_with(AUDIENCE,
                                   'AnythingSinceMocked')


def test_no_token(mocker, client, manager):
    verify = mock_token(mocker)
    res = client.post(DELETE_URL, json=TASK)
    assert res.status_code == 401
    verify.assert_not_called()
    manager.delete_account_from_task.assert_not_called()


def test_bad_token(mocker, client, manager):
    mocker.patch('customer_accounts.authorization.oidc.verify_token',
                 side_effect=ValueError('Token expired'))
    res = client.post(DELETE_URL, json=TASK, headers=HEADERS)
    assert res.status_code == 401
    manager.delete_account_from_task.assert_not_called()


def test_other_service_account(mocker, client, manager):
    mock_token(mocker, email='someone-else@example.com')
    res = client.post(DELETE_URL, json=TASK, headers=HEADERS)
    assert res.status_code == 401
    manager.delete_account_from_task.assert_not_called()


def test_unknown_version(mocker, client, manager):
    mock_token(mocker)
    res = client.post('/v2/cloud-tasks/accounts/delete', json=TASK,
                      headers=HEADERS)
    assert res.status_code == 404
    manager.delete_account_from_task.assert_not_called()


def test_invalid_task(mocker, client, manager):
    mock_token(mocker)
    for payload in ({'reason': 'fraud'}, {'uid': UID, 'reason': 'because'},
                    {'uid': '', 'reason': 'fraud'}):
        res = client.post(DELETE_URL, json=payload, headers=HEADERS)
        assert res.status_code == 400
    res = client.post(DELETE_URL, data='not json', headers=HEADERS)
    assert res.status_code == 400
    manager.delete_account_from_task.assert_not_called()


def test_delete_fails(mocker, client, manager):
    """The queue is told to try again."""
    mock_token(mocker)
    manager.delete_account_from_task.side_effect = IOError('nope')
    res = client.post(DELETE_URL, json=TASK, headers=HEADERS)
    assert res.status_code == 500
