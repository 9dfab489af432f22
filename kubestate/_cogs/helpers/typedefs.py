"""
Rudimentary type [re-]definitions for cross-versioned Python & mypy.

Some stdlib classes are generics in the type-sheds but not at runtime,
e.g. `logging.LoggerAdapter`. This module defines them in a reusable way,
plus some common plain type definitions used across the codebase.
"""
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Collection, Union

if TYPE_CHECKING:
    LoggerAdapter = logging.LoggerAdapter[Any]
else:
    LoggerAdapter = logging.LoggerAdapter

# As publicly exposed: we only promise that it is based on one of the built-in loggable classes.
Logger = Union[logging.Logger, LoggerAdapter]

# Anything that comes out of `json.loads()`. Kept loose on purpose: the API is schemaless for us.
JsonValue = Any

# A predicate over the fetched resources: falsy for "not yet", truthy for the match.
Condition = Callable[[Collection[Any]], Union[Any, Awaitable[Any]]]
