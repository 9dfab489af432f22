"""
All the structures coming from/to the Kubernetes API.

For type-checking, they are detailed to the per-field level only
for the fields used by the library itself. Arbitrary other fields
exist at runtime and are passed through untouched.

Everything marked "raw" is plain unwrapped unprocessed data as JSON-decoded
from the Kubernetes API, as retrieved in watching or fetching API calls.
"""
from typing import Any, List, Mapping, Optional

from typing_extensions import Literal, TypedDict

Labels = Mapping[str, str]
Annotations = Mapping[str, str]

RawEventType = Literal['ADDED', 'MODIFIED', 'DELETED', 'BOOKMARK', 'ERROR']


class RawMeta(TypedDict, total=False):
    uid: str
    name: str
    namespace: str
    labels: Labels
    annotations: Annotations
    resourceVersion: str


class RawBody(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: RawMeta
    spec: Mapping[str, Any]
    status: Mapping[str, Any]


class RawEvent(TypedDict):
    type: RawEventType
    object: RawBody


class RawList(TypedDict, total=False):
    apiVersion: str
    kind: str
    metadata: Mapping[str, Any]
    items: List[RawBody]


def is_envelope(data: Any) -> bool:
    """ Check if the data is a watch-event envelope (``{type, object}``). """
    return isinstance(data, Mapping) and 'type' in data and 'object' in data


def unwrap(data: Any) -> Any:
    """ Get the resource body from a watch-event envelope, or the data as is. """
    return data['object'] if is_envelope(data) else data


def get_name(body: Optional[Mapping[str, Any]]) -> Optional[str]:
    metadata = (body or {}).get('metadata') or {}
    return metadata.get('name')


def get_namespace(body: Optional[Mapping[str, Any]]) -> Optional[str]:
    metadata = (body or {}).get('metadata') or {}
    return metadata.get('namespace')


def build_labels_selector(labels: Optional[Labels]) -> Optional[str]:
    """ Render the labels into the ``labelSelector`` query param: ``k1=v1,k2=v2``. """
    if not labels:
        return None
    return ','.join(f'{key}={value}' for key, value in labels.items())
