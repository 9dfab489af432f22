import aiohttp
import aiohttp.web
import pytest

from kubestate._cogs.clients.errors import APIConflictError, APIError, APIForbiddenError, \
                                          APINotFoundError, APIUnauthorizedError, \
                                          is_failure_status


def test_aiohttp_is_not_leaked_outside():
    assert not issubclass(APIError, aiohttp.ClientError)


def test_exception_without_payload():
    exc = APIError(None, status=456)
    assert exc.status == 456
    assert exc.code is None
    assert exc.message is None
    assert exc.reason is None
    assert exc.details is None


def test_exception_with_payload():
    exc = APIError({"message": "msg", "reason": "reason", "details": {"a": "b"}}, status=456)
    assert exc.status == 456
    assert exc.code is None
    assert exc.message == "msg"
    assert exc.reason == "reason"
    assert exc.details == {'a': 'b'}


@pytest.mark.parametrize('data, expected', [
    ({'kind': 'Status', 'status': 'Failure'}, True),
    ({'kind': 'Status', 'status': 'Success'}, False),
    ({'kind': 'Pod', 'status': 'Failure'}, False),
    ({'kind': 'Status'}, False),
    ('Failure', False),
    (None, False),
])
def test_failure_status_detection(data, expected):
    assert is_failure_status(data) is expected


@pytest.mark.parametrize('status, exctype', [
    (400, APIError),
    (401, APIUnauthorizedError),
    (403, APIForbiddenError),
    (404, APINotFoundError),
    (409, APIConflictError),
    (500, APIError),
    (666, APIError),
])
async def test_error_classes_by_statuses(resp_mocker, aresponses, hostname, client, status, exctype):
    resp = aresponses.Response(status=status, reason='oops')
    list_mock = resp_mocker(return_value=resp)
    aresponses.add(hostname, '/api/v1/pods', 'get', list_mock)

    with pytest.raises(exctype) as e:
        await client.pods.get()
    assert type(e.value) is exctype
    assert e.value.status == status
    assert e.value.message is None  # not a Status payload


async def test_non_status_payloads_are_not_exposed(resp_mocker, aresponses, hostname, client):
    resp = aiohttp.web.json_response({'kind': 'Secret', 'data': {'password': 'qwerty'}}, status=500)
    list_mock = resp_mocker(return_value=resp)
    aresponses.add(hostname, '/api/v1/pods', 'get', list_mock)

    with pytest.raises(APIError) as e:
        await client.pods.get()
    assert e.value.details is None
    assert 'qwerty' not in repr(e.value)
