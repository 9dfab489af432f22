import functools
import logging

import click.testing
import pytest

from kubestate._cogs.structs.credentials import ConnectionInfo
from kubestate.cli import main


@pytest.fixture(autouse=True)
def _restore_root_logger():
    # The CLI configures the logging to the runner's stderr, which is closed afterwards.
    logger = logging.getLogger()
    handlers = logger.handlers[:]
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.fixture()
def runner():
    runner = click.testing.CliRunner()
    return runner


@pytest.fixture()
def invoke(runner):
    return functools.partial(runner.invoke, main)


@pytest.fixture()
def login(mocker, hostname):
    info = ConnectionInfo(server=f'https://{hostname}', default_namespace='default')
    return mocker.patch('kubestate._core.intents.piggybacking.login', return_value=info)
