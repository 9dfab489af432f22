"""
Stock conditions for polling, and stock filters for the watch-streams.

The conditions are factories: each call returns a new predicate over
the fetched resources, usable in ``when()`` and ``change_state()``::

    await client.pods.when(conditions.has_phase('Running'), template=pod)
    await client.pods.when(conditions.absent(), template=pod)

The filters are async generators over the watch-events::

    async for pod in conditions.filter_running(client.pods.watch(template=pod)):
        break
"""
from typing import Any, AsyncIterable, AsyncIterator, Callable, Collection, Mapping, Optional

from kubestate._cogs.structs import bodies, dicts, matching

Predicate = Callable[[Collection[Any]], Any]

RUNNING = 'Running'
STOPPED = 'Stopped'


def exists() -> Predicate:
    """ Match when there is at least one resource; the resources are the match. """
    def condition(resources: Collection[Any]) -> Any:
        return list(resources)
    return condition


def absent() -> Predicate:
    """ Match when there are no resources at all. """
    def condition(resources: Collection[Any]) -> Any:
        return not resources
    return condition


def has_phase(phase: str) -> Predicate:
    """ Match the first resource that has reached the phase (``status.phase``). """
    def condition(resources: Collection[Any]) -> Any:
        for resource in resources:
            if get_phase(resource) == phase:
                return resource
        return None
    return condition


def has_state(template: Mapping[str, Any]) -> Predicate:
    """ Match the first resource that structurally matches the template. """
    def condition(resources: Collection[Any]) -> Any:
        return matching.find(resources, template)
    return condition


def get_phase(resource: Any) -> Optional[str]:
    phase = dicts.resolve(bodies.unwrap(resource), 'status.phase', None)
    return phase if isinstance(phase, str) else None


async def filter_phase(events: AsyncIterable[Any], phase: str) -> AsyncIterator[Any]:
    """ Yield the objects of the watch-events whose phase is the specified one. """
    async for event in events:
        if get_phase(event) == phase:
            yield bodies.unwrap(event)


def filter_running(events: AsyncIterable[Any]) -> AsyncIterator[Any]:
    return filter_phase(events, RUNNING)


def filter_stopped(events: AsyncIterable[Any]) -> AsyncIterator[Any]:
    return filter_phase(events, STOPPED)


async def filter_state(events: AsyncIterable[Any], template: Mapping[str, Any]) -> AsyncIterator[Any]:
    """
    Yield the watch-events matching the template, as they are (in their envelopes).

    The template is matched against the event's object, or against the whole
    event if the template itself is shaped as an event (``{type, object}``).
    """
    async for event in events:
        if bodies.is_envelope(template):
            if matching.match(event, template):
                yield event
        elif matching.match_resource(event, template):
            yield event
