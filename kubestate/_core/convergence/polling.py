"""
Polling of the resources until a condition is met.

Every attempt fetches the current resources and checks the condition
on them. The attempts are spaced by the interval, with no sleep after
the last attempt. Nothing is cached between the attempts: the condition
always sees the freshest state of the cluster.

The errors of the fetching (networking, decoding, API) are not retried here:
they abort the polling immediately. Only the "not yet" results are retried.
"""
import asyncio
import inspect
from typing import Any, Awaitable, Callable, Collection

from kubestate._cogs.helpers import typedefs
from kubestate._cogs.structs import matching
from kubestate._core.convergence import errors

Fetcher = Callable[[], Awaitable[Collection[Any]]]


async def when(
        *,
        fetch: Fetcher,
        condition: typedefs.Condition,
        times: int = 60,
        interval: float = 1.0,
        logger: typedefs.Logger,
) -> Any:
    """
    Fetch & check repeatedly until the condition returns a match; return the match.

    Raises `ConditionTimeoutError` if there is no match after ``times`` attempts.
    """
    validate(times=times, interval=interval)

    result: Any = None
    for attempt in range(1, times + 1):
        resources = await fetch()
        result = await check(condition, resources)
        if matching.is_satisfied(result):
            logger.debug(f"Condition is met at attempt {attempt}/{times}.")
            return result

        logger.debug(f"Condition is not met at attempt {attempt}/{times}; "
                     f"{len(resources)} resources fetched.")
        if attempt < times:
            await asyncio.sleep(interval)

    raise errors.ConditionTimeoutError(
        f"Condition is not met after {times} attempts with {interval}s interval.",
        attempts=times, result=result)


async def check(condition: typedefs.Condition, resources: Collection[Any]) -> Any:
    """ Call the condition, sync or async, and return its result. """
    result = condition(resources)
    if inspect.isawaitable(result):
        result = await result
    return result


def validate(*, times: int, interval: float) -> None:
    """ Check the polling limits before any I/O is done with them. """
    if times < 1:
        raise errors.ContractError(f"The number of attempts must be positive, got {times!r}.")
    if interval < 0:
        raise errors.ContractError(f"The interval must be non-negative, got {interval!r}.")
