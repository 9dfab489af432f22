"""
Structural matching & merging of JSON-like values.

The values are those produced by `json.loads`: dicts, lists, strings,
numbers, booleans, and ``None``. The Python types serve as the JSON tags,
with one exception: ``bool`` is a subclass of ``int`` in Python, but not
in JSON, so ``True`` never matches ``1`` (while ``1`` matches ``1.0``).

A template matches a candidate when:

* For objects (dicts): every key of the template is present in the candidate,
  and its value matches the candidate's value recursively.
  Extra keys of the candidate are ignored.
* For arrays (lists): both arrays have the same length, and every element
  of the template matches the candidate's element at the same position.
* For scalars: the JSON types and the values are equal.

For resources, the top-level ``kind`` is excluded on both sides, since
it is not consistently present in the API responses (e.g. in the list items).
"""
import collections.abc
from typing import Any, Iterable, Mapping, Optional

from kubestate._cogs.structs import bodies

IGNORED_KEYS = frozenset({'kind'})


def match(candidate: Any, template: Any) -> bool:
    """ Check if the candidate value structurally matches the template value. """
    if isinstance(template, collections.abc.Mapping):
        if not isinstance(candidate, collections.abc.Mapping):
            return False
        return all(key in candidate and match(candidate[key], val) for key, val in template.items())
    elif isinstance(template, (list, tuple)):
        if not isinstance(candidate, (list, tuple)) or len(candidate) != len(template):
            return False
        return all(match(c, t) for c, t in zip(candidate, template))
    elif isinstance(template, bool) or isinstance(candidate, bool):
        return type(template) is type(candidate) and template == candidate
    elif isinstance(template, (int, float)) and isinstance(candidate, (int, float)):
        return template == candidate
    else:
        return type(template) is type(candidate) and template == candidate


def strip(body: Any, keys: Iterable[str] = IGNORED_KEYS) -> Any:
    """ Make a shallow copy of the body without the top-level keys (if it is a dict). """
    if isinstance(body, collections.abc.Mapping):
        return {key: val for key, val in body.items() if key not in keys}
    return body


def match_resource(candidate: Any, template: Mapping[str, Any]) -> bool:
    """
    Check if the resource (maybe wrapped into a watch-event) matches the template.
    """
    return match(strip(bodies.unwrap(candidate)), strip(template))


def find(resources: Iterable[Any], template: Mapping[str, Any]) -> Optional[Any]:
    """ Return the first resource matching the template, or ``None``. """
    for resource in resources:
        if match_resource(resource, template):
            return resource
    return None


def merge(base: Any, delta: Any) -> Any:
    """
    Deep-merge the delta into the base, and return the new merged value.

    Neither the base nor the delta are modified. Dicts are merged recursively,
    lists are merged element-wise (by their positions), other values
    of the delta replace the values of the base. ``None`` in the delta
    does not override the base's value.
    """
    if isinstance(base, collections.abc.Mapping) and isinstance(delta, collections.abc.Mapping):
        merged = {key: merge(None, val) for key, val in base.items()}
        for key, val in delta.items():
            merged[key] = merge(merged.get(key), val)
        return merged
    elif isinstance(base, (list, tuple)) and isinstance(delta, (list, tuple)):
        merged_list = [merge(None, val) for val in base]
        for idx, val in enumerate(delta):
            if idx < len(merged_list):
                merged_list[idx] = merge(merged_list[idx], val)
            else:
                merged_list.append(merge(None, val))
        return merged_list
    elif delta is None:
        return merge(None, base) if base is not None else None
    elif isinstance(delta, collections.abc.Mapping):
        return {key: merge(None, val) for key, val in delta.items()}
    elif isinstance(delta, (list, tuple)):
        return [merge(None, val) for val in delta]
    else:
        return delta


def is_satisfied(result: Any) -> bool:
    """
    Interpret the result of a condition: is it a match, or "not yet"?

    A single resource (a dict) is always a match, even if it is empty.
    Everything else is a match only if truthy: so, an empty collection,
    ``None``, ``False`` all mean "not yet". The conditions for the absence
    of resources must therefore return a truthy sentinel, such as ``True``.
    """
    if isinstance(result, collections.abc.Mapping):
        return True
    return bool(result)
