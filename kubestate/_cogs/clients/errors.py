"""
The errors of the API calls, independent of the HTTP client library.

The callers catch these errors only, never those of ``aiohttp``: the HTTP
library's errors are chained as the causes for the stack traces, and
the networking issues (connections, timeouts) become `TransportError`.

The HTTP statuses that the callers usually want to handle differently
(401, 403, 404, 409) have their own classes. All other statuses are
`APIError` itself, and differ only by its fields. The fields are taken
from the ``kind: Status`` response bodies where the API provides them.
"""
import collections.abc
import json
from typing import Any, Collection, Mapping, Optional, Type

import aiohttp
from typing_extensions import Literal, TypedDict


class RawStatusCause(TypedDict):
    field: str
    reason: str
    message: str


class RawStatusDetails(TypedDict):
    name: str
    uid: str
    retryAfterSeconds: int
    kind: str
    group: str
    causes: Collection[RawStatusCause]


# As per https://kubernetes.io/docs/reference/kubernetes-api/common-definitions/status/
class RawStatus(TypedDict):
    apiVersion: str
    kind: Literal["Status"]
    code: int
    status: Literal["Success", "Failure"]
    reason: str
    message: str
    details: RawStatusDetails


class TransportError(Exception):
    """
    The request could not be performed or completed at the networking level.
    """


class DecodeError(ValueError):
    """
    A record in the response stream is not a valid JSON document.

    The sequence of the decoded items is terminated by this error.
    """

    def __init__(self, message: str, *, record: bytes) -> None:
        super().__init__(message)
        self.record = record


class APIError(Exception):
    """ The API has responded with an HTTP error status. """

    def __init__(
            self,
            payload: Optional[RawStatus],
            *,
            status: int,
    ) -> None:
        self._payload: Mapping[str, Any] = payload or {}
        self._status = status
        super().__init__(self.message or f"The API has failed with HTTP status {status}.")

    @property
    def status(self) -> int:
        return self._status

    @property
    def code(self) -> Optional[int]:
        return self._payload.get('code')

    @property
    def message(self) -> Optional[str]:
        return self._payload.get('message')

    @property
    def reason(self) -> Optional[str]:
        return self._payload.get('reason')

    @property
    def details(self) -> Optional[RawStatusDetails]:
        return self._payload.get('details')


class APIUnauthorizedError(APIError):
    pass


class APIForbiddenError(APIError):
    pass


class APINotFoundError(APIError):
    pass


class APIConflictError(APIError):
    pass


class APIFailureStatus(APIError):
    """
    A ``kind: Status`` object with ``status: Failure`` was received as data.

    This happens with the successful HTTP responses too, e.g. in the watch-streams
    or in the lists. Such objects are never delivered to the consumers as data.
    """

    def __init__(self, payload: RawStatus) -> None:
        code = payload.get('code')
        super().__init__(payload, status=code if isinstance(code, int) else 0)


class ResourceExistsError(Exception):
    """ The resource to be created already exists (and the creation is not forced). """


class ResourceAbsentError(Exception):
    """ The resource to be deleted or patched does not exist. """


ERRORS_BY_STATUS: Mapping[int, Type[APIError]] = {
    401: APIUnauthorizedError,
    403: APIForbiddenError,
    404: APINotFoundError,
    409: APIConflictError,
}


def is_failure_status(data: Any) -> bool:
    """ Check if the decoded data is a K8s API failure report (``kind: Status``). """
    return (isinstance(data, collections.abc.Mapping) and
            data.get('kind') == 'Status' and
            data.get('status') == 'Failure')


async def check_response(response: aiohttp.ClientResponse) -> None:
    """
    Raise an `APIError` (or its subclass) if the response has an error status.
    """
    if response.status < 400:
        return

    # The body is read before raise_for_status(), which releases the response.
    try:
        payload = await response.json()
    except (json.JSONDecodeError, aiohttp.ContentTypeError, aiohttp.ClientConnectionError):
        payload = None

    # Other kinds of bodies are not exposed: they can contain anything, even the secrets.
    if not isinstance(payload, collections.abc.Mapping) or payload.get('kind') != 'Status':
        payload = None

    cls = ERRORS_BY_STATUS.get(response.status, APIError)
    try:
        response.raise_for_status()
    except aiohttp.ClientResponseError as e:
        raise cls(payload, status=response.status) from e
