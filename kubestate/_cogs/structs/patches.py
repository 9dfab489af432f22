"""
Patches as sent to the K8s API.

Two flavours are supported:

* Strategic merge patches: the patch object is sent as is.
* JSON patches (RFC-6902) with a single operation: the patch object
  is a sparse body with exactly one leaf field; that field's path becomes
  the operation's path, and its value becomes the operation's value.
"""
import enum
from typing import Any, Dict, List, Mapping, Union

JSONPatchOp = Dict[str, Any]
Payload = Union[Mapping[str, Any], List[JSONPatchOp]]


class PatchType(str, enum.Enum):
    ADD = 'add'
    REPLACE = 'replace'
    REMOVE = 'remove'
    MERGE = 'merge'

    @property
    def content_type(self) -> str:
        if self is PatchType.MERGE:
            return 'application/strategic-merge-patch+json'
        else:
            return 'application/json-patch+json'


def enumerate_paths(obj: Any, prefix: str = '') -> List[str]:
    """
    List the JSON-pointer paths of all leaves in a nested dict.

    Empty and ``None`` leaves are not included: they have nothing to patch.
    """
    if isinstance(obj, Mapping):
        paths: List[str] = []
        for key, val in obj.items():
            escaped = str(key).replace('~', '~0').replace('/', '~1')
            paths.extend(enumerate_paths(val, prefix=f'{prefix}/{escaped}'))
        return paths
    elif obj is None or obj == {}:
        return []
    else:
        return [prefix]


def build_payload(patch: Mapping[str, Any], type: PatchType) -> Payload:
    """
    Convert a sparse patch object into the payload of the specific patch type.
    """
    if type is PatchType.MERGE:
        return patch

    paths = enumerate_paths(patch)
    if len(paths) != 1:
        raise ValueError(f"A {type.value!r} patch must contain exactly one path; got {paths!r}.")

    path = paths[0]
    value: Any = patch
    for key in path.lstrip('/').split('/'):
        value = value[key.replace('~1', '/').replace('~0', '~')]

    op: JSONPatchOp = {'op': type.value, 'path': path}
    if type is not PatchType.REMOVE:
        op['value'] = value
    return [op]
