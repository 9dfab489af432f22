"""
Decoding of the API responses into the resources (or watch-events).

The decoding is a lazy pipeline over the response's byte stream:

1. Split the bytes into records: one JSON document per line for the watch-streams,
   or the whole body as one JSON document for the regular (list) responses.
2. Parse every record; a malformed record fails the whole sequence (`DecodeError`).
3. Flatten the lists: ``{"items": [a, b]}`` yields ``a``, then ``b``;
   all other records are yielded as they are.
4. Fail on ``kind: Status`` + ``status: Failure`` items (`APIFailureStatus`),
   regardless of the template and the view -- they are never the data.
5. Filter by the template (if given), ignoring ``kind`` on both sides.
   The mismatching items are silently skipped -- it is not an error.
6. Project the items to the view (if given): a field path in every item.

Nothing is read from the stream until the consumer asks for the next item,
so a slow consumer holds the network reads instead of accumulating the data.
"""
import json
from typing import Any, AsyncIterator, Iterator, Mapping, Optional, Protocol

from kubestate._cogs.clients import errors
from kubestate._cogs.structs import bodies, dicts, matching

DEFAULT_CHUNK_SIZE = 1024 * 1024

# A field path to extract from every item: "status.phase", ("status", "phase"), etc.
View = dicts.FieldSpec


class ByteStream(Protocol):
    """ Anything that can give the bytes by chunks, e.g. `aiohttp.StreamReader`. """
    def iter_chunked(self, n: int) -> AsyncIterator[bytes]: ...


async def decode(
        content: ByteStream,
        *,
        template: Optional[Mapping[str, Any]] = None,
        view: Optional[View] = None,
        streaming: bool = False,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> AsyncIterator[Any]:
    """
    Decode the byte stream into the items, filtered and projected.

    In the streaming mode, the stream is expected to be JSON-lines (one record
    per line), and can be infinite. Otherwise, the whole stream is one record.
    """
    records = (iter_jsonlines(content, chunk_size=chunk_size) if streaming else
               read_document(content, chunk_size=chunk_size))
    async for record in records:
        for item in select([parse(record)], template=template, view=view):
            yield item


def select(
        records: Any,
        *,
        template: Optional[Mapping[str, Any]] = None,
        view: Optional[View] = None,
) -> Iterator[Any]:
    """
    Flatten, check, filter, and project the already parsed records.
    """
    for record in records:
        for item in flatten(record):
            body = bodies.unwrap(item)
            if errors.is_failure_status(body):
                raise errors.APIFailureStatus(body)
            if template is not None and not matching.match_resource(item, template):
                continue
            yield project(item, view)


def flatten(record: Any) -> Iterator[Any]:
    if isinstance(record, Mapping) and isinstance(record.get('items'), list):
        yield from record['items']
    else:
        yield record


def project(item: Any, view: Optional[View]) -> Any:
    if view is None:
        return item
    return dicts.resolve(item, view, None)


def parse(record: bytes) -> Any:
    try:
        return json.loads(record.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise errors.DecodeError(f"Malformed record in the response: {record[:100]!r}",
                                 record=record) from e


async def read_document(
        content: ByteStream,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> AsyncIterator[bytes]:
    """
    Read the whole stream as a single record. An empty (or blank) body is no record.

    Unlike the watch-streams, regular responses can be pretty-printed,
    i.e. spread over multiple lines, so they cannot be split by lines.
    """
    buffer = b''
    async for data in content.iter_chunked(chunk_size):
        buffer += data
    if buffer.strip():
        yield buffer


async def iter_jsonlines(
        content: ByteStream,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> AsyncIterator[bytes]:
    """
    Split the byte stream into the non-blank lines, as they arrive.

    The built-in line iteration of aiohttp (``async for line in content``)
    is not used: it fails on the lines longer than its internal buffer limits
    (128 KB by default), while the K8s objects (e.g. secrets, config maps)
    can be megabytes long. Here, the lines are re-assembled from the chunks
    of any size, so the line length is unlimited.
    """
    buffer = b''
    async for chunk in content.iter_chunked(chunk_size):
        buffer += chunk
        *lines, buffer = buffer.split(b'\n')
        for line in lines:
            if line.strip():
                yield line

    # The last line can come without the trailing newline.
    if buffer.strip():
        yield buffer
