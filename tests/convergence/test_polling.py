from unittest.mock import AsyncMock, Mock

import pytest

from kubestate._cogs.clients.errors import APIFailureStatus, TransportError
from kubestate._core.convergence.errors import ConditionTimeoutError, ContractError
from kubestate._core.convergence.polling import when

POD = {'metadata': {'name': 'a'}, 'status': {'phase': 'Running'}}


async def test_success_at_first_attempt(logger):
    fetch = AsyncMock(return_value=[POD])
    condition = Mock(return_value=POD)
    result = await when(fetch=fetch, condition=condition, times=3, interval=0, logger=logger)
    assert result is POD
    assert fetch.await_count == 1
    condition.assert_called_once_with([POD])


async def test_success_after_a_few_attempts(logger):
    fetch = AsyncMock(side_effect=[[], [], [POD]])
    condition = Mock(side_effect=lambda resources: resources)
    result = await when(fetch=fetch, condition=condition, times=5, interval=0, logger=logger)
    assert result == [POD]
    assert fetch.await_count == 3


async def test_timeout_after_all_attempts(logger):
    fetch = AsyncMock(return_value=[POD])
    condition = Mock(return_value=None)
    with pytest.raises(ConditionTimeoutError) as e:
        await when(fetch=fetch, condition=condition, times=4, interval=0, logger=logger)
    assert fetch.await_count == 4
    assert condition.call_count == 4
    assert e.value.attempts == 4
    assert e.value.result is None


async def test_empty_list_is_not_a_match(logger):
    fetch = AsyncMock(return_value=[])
    condition = Mock(return_value=[])
    with pytest.raises(ConditionTimeoutError) as e:
        await when(fetch=fetch, condition=condition, times=2, interval=0, logger=logger)
    assert e.value.result == []


async def test_empty_dict_is_a_match(logger):
    fetch = AsyncMock(return_value=[{}])
    condition = Mock(return_value={})
    result = await when(fetch=fetch, condition=condition, times=2, interval=0, logger=logger)
    assert result == {}


async def test_async_conditions_are_awaited(logger):
    fetch = AsyncMock(return_value=[POD])
    condition = AsyncMock(return_value=POD)
    result = await when(fetch=fetch, condition=condition, times=1, interval=0, logger=logger)
    assert result is POD
    condition.assert_awaited_once_with([POD])


async def test_sleeps_between_attempts_but_not_after_the_last_one(mocker, logger):
    sleep = mocker.patch('asyncio.sleep', new_callable=AsyncMock)
    fetch = AsyncMock(return_value=[])
    condition = Mock(return_value=None)
    with pytest.raises(ConditionTimeoutError):
        await when(fetch=fetch, condition=condition, times=3, interval=12.5, logger=logger)
    assert sleep.await_count == 2
    assert [call.args for call in sleep.await_args_list] == [(12.5,), (12.5,)]


async def test_polling_is_bounded_in_time(timer, logger):
    fetch = AsyncMock(return_value=[])
    condition = Mock(return_value=None)
    with timer:
        with pytest.raises(ConditionTimeoutError):
            await when(fetch=fetch, condition=condition, times=5, interval=0.05, logger=logger)
    assert fetch.await_count == 5
    assert 0.19 <= timer.seconds < 0.2 + 0.5  # 4 sleeps, plus some tolerance


async def test_fast_polling_of_an_eventually_running_pod(timer, logger):
    pending = dict(POD, status={'phase': 'Pending'})
    fetch = AsyncMock(side_effect=[[pending], [pending], [POD]])

    def is_running(resources):
        return [r for r in resources if r['status']['phase'] == 'Running']

    with timer:
        result = await when(fetch=fetch, condition=is_running, times=10, interval=0.01, logger=logger)
    assert result == [POD]
    assert fetch.await_count == 3
    assert timer.seconds < 1.0


@pytest.mark.parametrize('error', [
    TransportError("connection reset"),
    APIFailureStatus({'kind': 'Status', 'status': 'Failure', 'code': 500}),
])
async def test_fetching_errors_are_escalated_immediately(error, logger):
    fetch = AsyncMock(side_effect=error)
    condition = Mock(return_value=None)
    with pytest.raises(type(error)):
        await when(fetch=fetch, condition=condition, times=10, interval=0, logger=logger)
    assert fetch.await_count == 1
    assert not condition.called


async def test_condition_errors_are_escalated_immediately(logger):
    fetch = AsyncMock(return_value=[POD])
    condition = Mock(side_effect=ZeroDivisionError)
    with pytest.raises(ZeroDivisionError):
        await when(fetch=fetch, condition=condition, times=10, interval=0, logger=logger)
    assert fetch.await_count == 1


@pytest.mark.parametrize('times, interval', [(0, 1.0), (-1, 1.0), (1, -0.1)])
async def test_contract_errors_before_fetching(times, interval, logger):
    fetch = AsyncMock(return_value=[POD])
    condition = Mock(return_value=POD)
    with pytest.raises(ContractError):
        await when(fetch=fetch, condition=condition, times=times, interval=interval, logger=logger)
    assert not fetch.called


async def test_attempts_are_logged(assert_logs, logger):
    fetch = AsyncMock(side_effect=[[], [POD]])
    condition = Mock(side_effect=lambda resources: resources)
    await when(fetch=fetch, condition=condition, times=3, interval=0, logger=logger)
    assert_logs([
        r"Condition is not met at attempt 1/3",
        r"Condition is met at attempt 2/3",
    ])
