"""
Watching and streaming the watch-events.

The watch-stream is one long HTTP response with JSON-lines in it,
one ``{"type": ..., "object": ...}`` event per line. It lasts until either
the server closes it (e.g. by the server-side timeout), or the consumer
stops consuming it (the connection is then closed on the generator's exit).

There is no re-connection: a closed stream ends the iteration. The errors
in the stream (``ERROR`` events with a ``Status`` failure) are escalated
as `errors.APIFailureStatus` by the decoder.
"""
import logging
from typing import Any, AsyncIterator, Dict, Mapping, Optional, cast

import aiohttp

from kubestate._cogs.clients import api, auth, decoding
from kubestate._cogs.configs import configuration
from kubestate._cogs.structs import bodies, references

logger = logging.getLogger(__name__)


async def watch_objs(
        *,
        context: auth.APIContext,
        settings: configuration.Settings,
        resource: references.Resource,
        namespace: references.Namespace = None,
        labels: Optional[bodies.Labels] = None,
        template: Optional[Mapping[str, Any]] = None,
        view: Optional[decoding.View] = None,
        since: Optional[str] = None,
) -> AsyncIterator[Any]:
    """
    Stream the watch-events of the resources, filtered and projected.

    The namespace-scoped call is used if the namespace is known (either
    explicitly, or from the template's metadata) and the resource is namespaced.
    Otherwise, the cluster-wide call is used.
    """
    if namespace is None and resource.namespaced:
        namespace = cast(references.Namespace, bodies.get_namespace(template))

    params: Dict[str, str] = {'watch': 'true'}
    if since is not None:
        params['resourceVersion'] = since
    if settings.watching.server_timeout is not None:
        params['timeoutSeconds'] = str(settings.watching.server_timeout)
    selector = bodies.build_labels_selector(labels)
    if selector is not None:
        params['labelSelector'] = selector

    # The most specific of the configured connection timeouts applies.
    candidates = [settings.watching.connect_timeout,
                  settings.networking.connect_timeout,
                  settings.networking.request_timeout]
    connect_timeout = next((t for t in candidates if t is not None), None)

    where = f'in {namespace!r}' if namespace is not None else 'cluster-wide'
    logger.debug(f"Starting the watch-stream for {resource!r} {where}.")
    try:
        async for item in api.stream(
            url=resource.get_url(namespace=namespace, params=params),
            template=template,
            view=view,
            context=context,
            settings=settings,
            logger=logger,
            timeout=aiohttp.ClientTimeout(
                total=settings.watching.client_timeout,
                sock_connect=connect_timeout,
            ),
        ):
            yield item
    finally:
        logger.debug(f"Stopping the watch-stream for {resource!r} {where}.")
