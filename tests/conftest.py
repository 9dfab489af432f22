import dataclasses
import json
import logging
import re
import time
from unittest.mock import AsyncMock, MagicMock

import pytest

from kubestate._cogs.clients.auth import APIContext
from kubestate._cogs.configs.configuration import Settings
from kubestate._cogs.structs.credentials import ConnectionInfo
from kubestate._kits.clients import KubeClient


@pytest.fixture()
def settings():
    return Settings()


@pytest.fixture()
def logger():
    return logging.getLogger('kubestate.tests')


#
# Mocks for the API server. No external calls must be made under any circumstances.
# The unit-tests must be fully isolated from the environment.
#

@pytest.fixture()
def hostname():
    """ A fake hostname to be used in all aiohttp/aresponses tests. """
    return 'fake-host'


@pytest.fixture()
def connection_info(hostname):
    return ConnectionInfo(server=f'https://{hostname}', default_namespace='default')


@pytest.fixture()
async def context(connection_info):
    """ A real API context (i.e. an aiohttp session), closed after the test. """
    async with APIContext(connection_info) as context:
        yield context


@pytest.fixture()
async def client(connection_info, settings):
    """ A cluster client with explicit credentials, closed after the test. """
    async with KubeClient(connection_info, settings=settings) as client:
        yield client


@pytest.fixture()
def resp_mocker(aresponses):
    """
    A factory of server-side callbacks for `aresponses` with mocking/spying.

    The value of the fixture is a function, which return a coroutine mock.
    That coroutine mock should be passed to `aresponses.add` as a response
    callback function. When called, it calls the mock defined by the function's
    arguments (specifically, return_value or side_effects).

    The difference from passing the responses directly to `aresponses.add`
    is that it is possible to assert on whether the response was handled
    by that callback at all (i.e. HTTP URL & method matched), especially
    if there are multiple responses registered. The request payloads
    are preserved in the ``payloads`` attribute of the mock.

    Sample usage::

        def test_me(resp_mocker):
            response = aiohttp.web.json_response({'a': 'b'})
            callback = resp_mocker(return_value=response)
            aresponses.add(hostname, '/path/', 'get', callback)
            do_something()
            assert callback.called
            assert callback.call_count == 1
    """
    def resp_maker(*args, **kwargs):
        actual_response = MagicMock(*args, **kwargs)

        async def resp_mock_effect(request):
            # The request's content can be read inside of the handler only.
            text = await request.text()
            try:
                callback.payloads.append(json.loads(text))
            except json.JSONDecodeError:
                callback.payloads.append(text)

            # Get a response/error as it was intended (via return_value/side_effect).
            return actual_response()

        callback = _SpyMock(side_effect=resp_mock_effect)
        callback.payloads = []
        return callback
    return resp_maker


class _SpyMock(AsyncMock):
    """ A coroutine mock that survives the copying of repeated routes in `aresponses`. """
    def __copy__(self):
        return self


@pytest.fixture()
def content_factory():
    """ A byte stream for the decoder, fed from the pre-defined chunks. """
    def make_content(*chunks: bytes):
        return FakeContent(chunks)
    return make_content


@dataclasses.dataclass()
class FakeContent:
    chunks: tuple
    reads: int = 0

    async def iter_chunked(self, n):
        for chunk in self.chunks:
            self.reads += 1
            yield chunk


#
# Helpers for the timing checks.
#

@pytest.fixture()
def timer():
    return Timer()


class Timer(object):
    """
    A helper context manager to measure the time of the code-blocks.
    Also, supports direct comparison with time-deltas and the numbers of seconds.

    Usage:

        with Timer() as timer:
            do_something()
            print(f"Executing for {timer.seconds}s already.")
            do_something_else()

        print(f"Executed in {timer.seconds}s.")
        assert timer.seconds < 5.0
    """

    def __init__(self):
        super().__init__()
        self._ts = None
        self._te = None

    @property
    def seconds(self):
        if self._ts is None:
            return None
        elif self._te is None:
            return time.perf_counter() - self._ts
        else:
            return self._te - self._ts

    def __repr__(self):
        status = 'new' if self._ts is None else 'running' if self._te is None else 'finished'
        return f'<Timer: {self.seconds}s ({status})>'

    def __enter__(self):
        self._ts = time.perf_counter()
        self._te = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._te = time.perf_counter()

    async def __aenter__(self):
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)


#
# Helpers for the logging checks.
#

@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    caplog.set_level(logging.DEBUG)

    def assert_logs_fn(patterns, prohibited=[], strict=False):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            # The expected pattern is at position 0.
            # Looking-ahead: if one of the following patterns matches, while the
            # 0th does not, then the log message is missing, and we fail the test.
            for idx, pattern in enumerate(remaining_patterns):
                m = re.search(pattern, message)
                if m:
                    if idx == 0:
                        remaining_patterns[:1] = []
                        break  # out of `remaining_patterns` cycle
                    else:
                        skipped_patterns = remaining_patterns[:idx]
                        raise AssertionError(f"Few patterns were skipped: {skipped_patterns!r}")
                elif strict:
                    raise AssertionError(f"Unexpected log message: {message!r}")

            # Check that the prohibited patterns do not appear in any message.
            for pattern in prohibited:
                m = re.search(pattern, message)
                if m:
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")

        # If all patterns have been matched in order, we are done.
        # if some are left, but the messages are over, then we fail.
        if remaining_patterns:
            raise AssertionError(f"Few patterns were missed: {remaining_patterns!r}")

    return assert_logs_fn
