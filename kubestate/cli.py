import asyncio
import functools
import json
from typing import Any, Callable, Dict, Optional, Sequence

import click

from kubestate._cogs.clients import errors as api_errors
from kubestate._cogs.structs import credentials
from kubestate._core.actions import loggers
from kubestate._core.convergence import conditions, errors
from kubestate._kits import clients


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


class LabelParamType(click.ParamType):
    name = 'label'

    def convert(self, value: Any, param: Any, ctx: Any) -> Any:
        if isinstance(value, tuple):
            return value
        key, sep, val = str(value).partition('=')
        if not key or not sep:
            self.fail(f"Labels must be in the form KEY=VALUE, got {value!r}.", param, ctx)
        return key, val


LOGGING_OPTIONS = [
    click.option('-v', '--verbose', is_flag=True, help="Log the debug messages too."),
    click.option('-d', '--debug', is_flag=True, help="Same as --verbose, plus asyncio's logs."),
    click.option('-q', '--quiet', is_flag=True, help="Log only the warnings and errors."),
    click.option('--log-format', type=LogFormatParamType(), default='full'),
    click.option('--log-prefix/--no-log-prefix', default=None,
                 help="Prefix the messages with the resources' names."),
    click.option('--log-refkey', type=str, help="The JSON key for the resources' references."),
]


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ Add the logging options to a command; configure the logging before it runs. """
    @functools.wraps(fn)  # keeps the options & arguments declared below
    def wrapper(
            *args: Any,
            verbose: bool,
            debug: bool,
            quiet: bool,
            log_format: loggers.LogFormat,
            log_prefix: Optional[bool],
            log_refkey: Optional[str],
            **kwargs: Any,
    ) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_prefix=log_prefix, log_refkey=log_refkey)
        return fn(*args, **kwargs)

    for option in reversed(LOGGING_OPTIONS):
        wrapper = option(wrapper)
    return wrapper


def selection_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator for the options that narrow down the resources. """
    fn = click.option('-s', '--server', type=str, default=None)(fn)
    fn = click.option('-l', '--label', 'labels', type=LabelParamType(), multiple=True)(fn)
    fn = click.option('-n', '--namespace', type=str, default=None)(fn)
    return fn


@click.version_option(prog_name='kubestate')
@click.group(name='kubestate', context_settings=dict(
    auto_envvar_prefix='KUBESTATE',
))
def main() -> None:
    pass


@main.command()
@logging_options
@selection_options
@click.option('--view', type=str, default=None)
@click.argument('kind')
def get(
        kind: str,
        namespace: Optional[str],
        labels: Sequence[Any],
        server: Optional[str],
        view: Optional[str],
) -> None:
    """ List the resources of a kind, one JSON document per line. """
    async def _get() -> None:
        async with _make_client(server) as client:
            resource_client = _get_resource_client(client, kind)
            items = await resource_client.get(namespace=namespace, labels=dict(labels) or None,
                                              view=view)
            for item in items:
                click.echo(json.dumps(item))

    _run(_get())


@main.command()
@logging_options
@selection_options
@click.option('--view', type=str, default=None)
@click.option('--phase', type=str, default=None)
@click.argument('kind')
def watch(
        kind: str,
        namespace: Optional[str],
        labels: Sequence[Any],
        server: Optional[str],
        view: Optional[str],
        phase: Optional[str],
) -> None:
    """ Stream the watch-events of a kind, one JSON document per line. """
    async def _watch() -> None:
        async with _make_client(server) as client:
            resource_client = _get_resource_client(client, kind)
            events = resource_client.watch(namespace=namespace, labels=dict(labels) or None,
                                           view=None if phase else view)
            if phase:
                events = conditions.filter_phase(events, phase)
            async for event in events:
                click.echo(json.dumps(event))

    _run(_watch())


@main.command()
@logging_options
@selection_options
@click.option('--phase', type=str, default=None)
@click.option('--absent', is_flag=True)
@click.option('--times', type=int, default=None)
@click.option('--interval', type=float, default=None)
@click.argument('kind')
@click.argument('name')
def wait(
        kind: str,
        name: str,
        namespace: Optional[str],
        labels: Sequence[Any],
        server: Optional[str],
        phase: Optional[str],
        absent: bool,
        times: Optional[int],
        interval: Optional[float],
) -> None:
    """ Wait until the named resource reaches the phase, exists, or is absent. """
    if phase and absent:
        raise click.UsageError("Either --phase or --absent can be used, not both.")

    async def _wait() -> None:
        async with _make_client(server) as client:
            resource_client = _get_resource_client(client, kind)
            metadata: Dict[str, Any] = {'name': name}
            ns = namespace or client.info.default_namespace
            if resource_client.resource.namespaced and ns:
                metadata['namespace'] = ns

            condition = (conditions.absent() if absent else
                         conditions.has_phase(phase) if phase else
                         conditions.exists())
            result = await resource_client.when(condition, template={'metadata': metadata},
                                                labels=dict(labels) or None,
                                                times=times, interval=interval)
            if not absent:
                click.echo(json.dumps(result))

    _run(_wait())


def _make_client(server: Optional[str]) -> clients.KubeClient:
    try:
        info = credentials.ConnectionInfo(server=server) if server else None
        return clients.KubeClient(info)
    except credentials.LoginError as e:
        raise click.ClickException(str(e))


def _get_resource_client(client: clients.KubeClient, kind: str) -> clients.ResourceClient:
    try:
        return client[kind]
    except KeyError:
        raise click.BadParameter(f"Unknown resource kind: {kind!r}.", param_hint='KIND')


def _run(coro: Any) -> None:
    try:
        asyncio.run(coro)
    except errors.ConditionTimeoutError as e:
        raise click.ClickException(str(e))
    except (api_errors.APIError, api_errors.TransportError, api_errors.DecodeError) as e:
        raise click.ClickException(f"{e.__class__.__name__}: {e}")
