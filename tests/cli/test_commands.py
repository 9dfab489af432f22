import json
from unittest.mock import AsyncMock, Mock

import pytest

from kubestate._cogs.clients.errors import APIForbiddenError
from kubestate._cogs.structs.credentials import LoginError
from kubestate._core.convergence.errors import ConditionTimeoutError
from kubestate._kits.clients import ResourceClient

POD1 = {'kind': 'Pod', 'metadata': {'name': 'a', 'namespace': 'ns1'}, 'status': {'phase': 'Running'}}
POD2 = {'kind': 'Pod', 'metadata': {'name': 'b', 'namespace': 'ns1'}, 'status': {'phase': 'Pending'}}


async def async_iter(items):
    for item in items:
        yield item


@pytest.fixture()
def get_mock(mocker):
    return mocker.patch.object(ResourceClient, 'get', AsyncMock(return_value=[POD1, POD2]))


@pytest.fixture()
def when_mock(mocker):
    return mocker.patch.object(ResourceClient, 'when', AsyncMock(return_value=POD1))


@pytest.fixture()
def watch_mock(mocker):
    events = [{'type': 'ADDED', 'object': POD2}, {'type': 'MODIFIED', 'object': POD1}]
    return mocker.patch.object(ResourceClient, 'watch', Mock(return_value=async_iter(events)))


def test_getting(invoke, login, get_mock):
    result = invoke(['get', 'pods', '-n', 'ns1', '-l', 'app=web', '-l', 'tier=db'])
    assert result.exit_code == 0
    assert [json.loads(line) for line in result.stdout.splitlines()] == [POD1, POD2]
    assert get_mock.await_count == 1
    assert get_mock.call_args.kwargs == dict(namespace='ns1', labels={'app': 'web', 'tier': 'db'},
                                             view=None)


def test_getting_with_a_view(invoke, login, get_mock):
    get_mock.return_value = ['Running', 'Pending']
    result = invoke(['get', 'Pod', '--view', 'status.phase'])
    assert result.exit_code == 0
    assert result.stdout.splitlines() == ['"Running"', '"Pending"']
    assert get_mock.call_args.kwargs == dict(namespace=None, labels=None, view='status.phase')


def test_explicit_server_skips_the_login(invoke, login, get_mock):
    result = invoke(['get', 'pods', '--server', 'https://elsewhere'])
    assert result.exit_code == 0
    assert not login.called


def test_server_from_the_environment(invoke, login, get_mock):
    result = invoke(['get', 'pods'], env={'KUBESTATE_GET_SERVER': 'https://elsewhere'})
    assert result.exit_code == 0
    assert not login.called


def test_unknown_kind_fails(invoke, login, get_mock):
    result = invoke(['get', 'unicorns'])
    assert result.exit_code == 2
    assert "Unknown resource kind: 'unicorns'" in result.output
    assert not get_mock.called


def test_malformed_labels_fail(invoke, login, get_mock):
    result = invoke(['get', 'pods', '-l', 'app'])
    assert result.exit_code == 2
    assert "KEY=VALUE" in result.output
    assert not get_mock.called


def test_login_failure_is_reported(invoke, login, get_mock):
    login.side_effect = LoginError("Cannot login: nothing.")
    result = invoke(['get', 'pods'])
    assert result.exit_code == 1
    assert "Cannot login: nothing." in result.output
    assert not get_mock.called


def test_api_errors_are_reported(invoke, login, get_mock):
    get_mock.side_effect = APIForbiddenError({'kind': 'Status', 'message': 'go away'}, status=403)
    result = invoke(['get', 'pods'])
    assert result.exit_code == 1
    assert "APIForbiddenError" in result.output
    assert "go away" in result.output


def test_watching(invoke, login, watch_mock):
    result = invoke(['watch', 'pods', '-n', 'ns1'])
    assert result.exit_code == 0
    events = [json.loads(line) for line in result.stdout.splitlines()]
    assert [event['type'] for event in events] == ['ADDED', 'MODIFIED']
    assert watch_mock.call_args.kwargs == dict(namespace='ns1', labels=None, view=None)


def test_watching_for_a_phase(invoke, login, watch_mock):
    result = invoke(['watch', 'pods', '--phase', 'Running', '--view', 'ignored'])
    assert result.exit_code == 0
    assert [json.loads(line) for line in result.stdout.splitlines()] == [POD1]
    assert watch_mock.call_args.kwargs['view'] is None


def test_waiting_for_existence(invoke, login, when_mock):
    result = invoke(['wait', 'pods', 'a', '-n', 'ns1', '--times', '3', '--interval', '0.5'])
    assert result.exit_code == 0
    assert json.loads(result.stdout) == POD1
    assert when_mock.await_count == 1
    assert when_mock.call_args.kwargs == dict(
        template={'metadata': {'name': 'a', 'namespace': 'ns1'}},
        labels=None, times=3, interval=0.5,
    )
    condition = when_mock.call_args.args[0]
    assert condition([POD2]) == [POD2]
    assert condition([]) == []


def test_waiting_for_a_phase(invoke, login, when_mock):
    result = invoke(['wait', 'pods', 'a', '--phase', 'Running'])
    assert result.exit_code == 0
    assert when_mock.call_args.kwargs['template'] == {'metadata': {'name': 'a', 'namespace': 'default'}}
    condition = when_mock.call_args.args[0]
    assert condition([POD2, POD1]) == POD1
    assert condition([POD2]) is None


def test_waiting_for_absence(invoke, login, when_mock):
    when_mock.return_value = True
    result = invoke(['wait', 'pods', 'a', '--absent'])
    assert result.exit_code == 0
    assert result.stdout == ''
    condition = when_mock.call_args.args[0]
    assert condition([]) is True
    assert condition([POD1]) is False


def test_waiting_for_cluster_scoped_resources(invoke, login, when_mock):
    result = invoke(['wait', 'namespaces', 'ns1', '-n', 'ignored'])
    assert result.exit_code == 0
    assert when_mock.call_args.kwargs['template'] == {'metadata': {'name': 'ns1'}}


def test_waiting_for_both_phase_and_absence_fails(invoke, login, when_mock):
    result = invoke(['wait', 'pods', 'a', '--phase', 'Running', '--absent'])
    assert result.exit_code == 2
    assert "Either --phase or --absent" in result.output
    assert not login.called
    assert not when_mock.called


def test_waiting_timeout_is_reported(invoke, login, when_mock):
    when_mock.side_effect = ConditionTimeoutError("Condition is not met after 3 attempts.",
                                                  attempts=3)
    result = invoke(['wait', 'pods', 'a'])
    assert result.exit_code == 1
    assert "Condition is not met after 3 attempts." in result.output
