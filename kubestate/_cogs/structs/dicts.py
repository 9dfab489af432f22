"""
Field paths in the nested dicts, as used for the views of the resources.
"""
import collections.abc
from typing import Any, List, Tuple, Union

FieldPath = Tuple[str, ...]
FieldSpec = Union[None, str, FieldPath, List[str]]


def parse_field(field: FieldSpec) -> FieldPath:
    """
    Convert any field into a tuple of nested sub-fields.

    Supported notations: ``None`` (the root), ``"spec.replicas"``,
    ``("spec", "replicas")``, ``["spec", "replicas"]``.
    """
    if field is None:
        return ()
    elif isinstance(field, str):
        return tuple(field.split('.'))
    elif isinstance(field, (list, tuple)):
        return tuple(field)
    else:
        raise ValueError(f"Field must be either a str, or a list/tuple. Got {field!r}")


def resolve(d: Any, field: FieldSpec, default: Any = None) -> Any:
    """
    Retrieve a nested sub-field from a dict, or the default if it is not there.

    Non-dict values on the way (e.g. ``None`` or strings) count as absent fields.
    """
    result = d
    for key in parse_field(field):
        if not isinstance(result, collections.abc.Mapping) or key not in result:
            return default
        result = result[key]
    return result
