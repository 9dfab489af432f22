"""
Changing the state of a resource and waiting until the change is visible.

The change is done by an action (e.g. a patch, a creation, or anything else),
and the result is observed by polling. Both run concurrently, as two tasks:
the polling can see the desired state even before the action has finished
(e.g. if someone else has changed the resource), and the action can finish
long before the changes are reflected in the resource's status.

The outcomes are prioritised as follows:

* The polling has succeeded: the match is returned, the action is cancelled.
* The action has failed: its error is raised, the polling is cancelled.
* The action has succeeded: the polling continues until it decides.
* The polling has failed (timed out or errored): its error is raised,
  the action is cancelled if it is still running.

If both are done at the same time, the polling's outcome wins. This way,
a timeout of the polling is never hidden behind a hanging action, and the
desired state is never ignored because of the action's late failure.
"""
import asyncio
import inspect
from typing import Any, Callable, Mapping, Optional

from kubestate._cogs.aiokits import aiotasks
from kubestate._cogs.helpers import typedefs
from kubestate._cogs.structs import matching
from kubestate._core.convergence import errors, polling


async def change_state(
        *,
        fetch: polling.Fetcher,
        state: Optional[Mapping[str, Any]],
        action: Optional[Callable[..., Any]],
        delta: Optional[Mapping[str, Any]] = None,
        condition: Optional[typedefs.Condition] = None,
        action_opts: Optional[Mapping[str, Any]] = None,
        times: int = 60,
        interval: float = 1.0,
        logger: typedefs.Logger,
) -> Any:
    """
    Bring the resource from the ``state`` to the desired state via the ``action``.

    The desired state is either a ``delta`` to the current state
    (it is then structurally matched), or an arbitrary ``condition``.
    Exactly one of them must be given.

    The ``fetch`` callable must return the resources of the current state,
    i.e. those matching ``state``. The action is called with ``action_opts``
    as the keyword arguments, plus the ``template`` (if any) merged with ``state``.

    If the desired state is already reached, the action is not invoked at all.
    """
    if state is None:
        raise errors.ContractError("The current state is required to change it.")
    if action is None or not callable(action):
        raise errors.ContractError("An action is required to change the state.")
    if delta is None and condition is None:
        raise errors.ContractError("Either a delta or a condition is required, got neither.")
    if delta is not None and condition is not None:
        raise errors.ContractError("Either a delta or a condition is required, got both.")
    polling.validate(times=times, interval=interval)

    effective: typedefs.Condition
    if delta is not None:
        target = matching.merge(state, delta)

        def effective(resources: Any) -> Any:
            return matching.find(resources, target)

    else:
        assert condition is not None  # for type-checkers
        effective = condition

    resources = await fetch()
    result = await polling.check(effective, resources)
    if matching.is_satisfied(result):
        logger.debug("The desired state is already reached; the action is skipped.")
        return result

    opts = dict(action_opts or {})
    opts['template'] = matching.merge(opts.get('template') or {}, state)

    logger.info("Changing the state and waiting for the change to be visible.")
    poller = aiotasks.create_task(
        polling.when(fetch=fetch, condition=effective, times=times, interval=interval, logger=logger),
        name='kubestate convergence poller')
    actor = aiotasks.create_task(
        invoke(action, **opts),
        name='kubestate convergence action')
    try:
        pending = {poller, actor}
        while True:
            done, pending = await aiotasks.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            if poller in done:
                match = poller.result()
                logger.debug("The desired state is reached.")
                return match
            if actor in done:
                try:
                    actor.result()
                except Exception as e:
                    logger.debug(f"The action has failed: {e!r}")
                    raise
                logger.debug("The action has succeeded; waiting for the desired state.")
    finally:
        await aiotasks.stop([task for task in (poller, actor) if not task.done()],
                            title="Convergence", quiet=True, cancelled=True, logger=logger)
        for task in (poller, actor):
            if task.done() and not task.cancelled():
                task.exception()  # mark as retrieved; it is either re-raised or irrelevant.


async def invoke(fn: Callable[..., Any], **kwargs: Any) -> Any:
    """ Call the function, sync or async, and return its result. """
    result = fn(**kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
