"""
Raw API calls: one HTTP request per call, with the responses decoded.

The URLs can be relative to the server (as built by `Resource.get_url`),
or absolute. There are no retries: every failure is escalated immediately,
either as `errors.APIError` (the HTTP statuses 4xx/5xx), or as
`errors.TransportError` (the networking issues and timeouts).
"""
import asyncio
from typing import Any, AsyncIterator, Mapping, Optional

import aiohttp

from kubestate._cogs.clients import auth, decoding, errors
from kubestate._cogs.configs import configuration
from kubestate._cogs.helpers import typedefs

# The errors of aiohttp that mean the networking issues, not the API's responses.
TRANSPORT_ERRORS = (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError)


async def request(
        method: str,
        url: str,
        *,
        context: auth.APIContext,
        settings: configuration.Settings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> aiohttp.ClientResponse:
    """
    Perform a single request and return the unread response.

    The response's content is left for the decoder; the caller must
    consume and release the response (e.g. ``async with response:``).
    """
    if '://' not in url:
        url = f"{context.server.rstrip('/')}/{url.lstrip('/')}"
    if timeout is None:
        timeout = aiohttp.ClientTimeout(total=settings.networking.request_timeout,
                                        sock_connect=settings.networking.connect_timeout)

    logger.debug(f"Requesting: {method.upper()} {url}")
    try:
        response = await context.session.request(method, url, json=payload,
                                                  headers=headers, timeout=timeout)
        await errors.check_response(response)
    except TRANSPORT_ERRORS as e:
        logger.debug(f"Request failed: {method.upper()} {url} -> {e!r}")
        raise errors.TransportError(f"Request failed: {method.upper()} {url}") from e
    return response


async def get(
        url: str,
        *,
        context: auth.APIContext,
        settings: configuration.Settings,
        template: Optional[Mapping[str, Any]] = None,
        view: Optional[decoding.View] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> Any:
    """ Get all the items of a (list) response, filtered & projected. """
    response = await request('get', url, headers=headers, timeout=timeout,
                             context=context, settings=settings, logger=logger)
    async with response:
        return await _collect(response, template=template, view=view, settings=settings)


async def post(url: str, **kwargs: Any) -> Any:
    return await _send('post', url, **kwargs)


async def patch(url: str, **kwargs: Any) -> Any:
    return await _send('patch', url, **kwargs)


async def delete(url: str, **kwargs: Any) -> Any:
    return await _send('delete', url, **kwargs)


async def stream(
        url: str,
        *,
        context: auth.APIContext,
        settings: configuration.Settings,
        template: Optional[Mapping[str, Any]] = None,
        view: Optional[decoding.View] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> AsyncIterator[Any]:
    """
    Yield the items of a JSON-lines response as they arrive.

    The response is released when the consumer stops (or the server does).
    """
    response = await request('get', url, headers=headers, timeout=timeout,
                             context=context, settings=settings, logger=logger)
    async with response:
        items = decoding.decode(response.content, template=template, view=view, streaming=True,
                                chunk_size=settings.decoding.chunk_size)
        try:
            async for item in items:
                yield item
        except TRANSPORT_ERRORS as e:
            raise errors.TransportError(f"Streaming failed: GET {url}") from e


async def _send(
        method: str,
        url: str,
        *,
        context: auth.APIContext,
        settings: configuration.Settings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        logger: typedefs.Logger,
) -> Any:
    # Single-object responses: an object, a Status (maybe a failure), or nothing at all.
    response = await request(method, url, payload=payload, headers=headers, timeout=timeout,
                             context=context, settings=settings, logger=logger)
    async with response:
        items = await _collect(response, settings=settings)
    return items[0] if items else None


async def _collect(
        response: aiohttp.ClientResponse,
        *,
        settings: configuration.Settings,
        template: Optional[Mapping[str, Any]] = None,
        view: Optional[decoding.View] = None,
) -> Any:
    items = decoding.decode(response.content, template=template, view=view,
                            chunk_size=settings.decoding.chunk_size)
    try:
        return [item async for item in items]
    except TRANSPORT_ERRORS as e:
        raise errors.TransportError(f"Reading failed: {response.method} {response.url}") from e
