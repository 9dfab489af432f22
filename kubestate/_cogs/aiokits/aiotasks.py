"""
Orchestration of the asyncio tasks: creating, waiting, stopping.

Only the tasks are supported here, not arbitrary awaitables: the tasks
are not only awaited but also cancelled, and only tasks can be cancelled
independently of their awaiters.
"""
import asyncio
from typing import TYPE_CHECKING, Any, Collection, Coroutine, Optional, Set, Tuple

from kubestate._cogs.helpers import typedefs

# The generic alias fails at runtime on some versions: 'type' object is not subscriptable.
if TYPE_CHECKING:
    Task = asyncio.Task[Any]
else:
    Task = asyncio.Task


def create_task(
        coro: Coroutine[Any, Any, Any],
        *,
        name: Optional[str] = None,
) -> Task:
    return asyncio.create_task(coro, name=name)


async def wait(
        tasks: Collection[Task],
        *,
        timeout: Optional[float] = None,
        return_when: Any = asyncio.ALL_COMPLETED,
) -> Tuple[Set[Task], Set[Task]]:
    """ Same as `asyncio.wait`, but an empty collection is not an error. """
    if not tasks:
        return set(), set()
    return await asyncio.wait(tasks, timeout=timeout, return_when=return_when)


async def stop(
        tasks: Collection[Task],
        *,
        title: str,
        quiet: bool = False,
        cancelled: bool = False,
        interval: Optional[float] = None,
        logger: Optional[typedefs.Logger] = None,
) -> Tuple[Set[Task], Set[Task]]:
    """
    Cancel the tasks and wait until they are all finished.

    With an ``interval``, the tasks still running after every interval
    are reported as not stopped yet; without it, there is only one wait,
    however long it takes. There is no timeout for the stopping itself:
    if it takes too long, the stopping coroutine must be cancelled.

    In the ``quiet`` mode, only the slow stopping is logged (i.e. when
    at least one interval has passed with some tasks still running).
    ``cancelled`` only changes the wording: whether the stopping is the
    consequence of a cancellation or of a regular finishing.

    The outcomes of the stopped tasks are retrieved and dropped:
    nothing they produce after being cancelled is of interest.
    """
    title = title.capitalize()

    def report(pending: Collection[Task], why: str, rounds: int) -> None:
        if logger is not None and (not quiet or pending or rounds > 1):
            state = 'are not' if pending else 'are'
            logger.debug(f"{title} tasks {state} stopped: {why}; tasks left: {set(pending)!r}")

    if not tasks:
        if logger is not None and not quiet:
            logger.debug(f"{title} tasks stopping is skipped: no tasks given.")
        return set(), set()

    for task in tasks:
        task.cancel()

    rounds = 0
    stopped: Set[Task] = set()
    pending: Set[Task] = set(tasks)
    while pending:
        rounds += 1
        try:
            done, pending = await wait(pending, timeout=interval)
        except asyncio.CancelledError:
            # The sub-tasks are already cancelled; let them finish on their own.
            remaining = [task for task in tasks if not task.done()]
            why = 'double-cancelling at stopping' if cancelled else 'cancelling at stopping'
            report(remaining, why, rounds)
            raise
        report(pending, 'cancelling normally' if cancelled else 'finishing normally', rounds)
        stopped.update(done)

    for task in stopped:
        if not task.cancelled():
            task.exception()

    return stopped, pending
