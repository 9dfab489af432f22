"""
Detecting the library's own version, e.g. for the User-Agent header.

The version is determined only once at import time, from the installed
distribution's metadata. If the package is not installed (e.g. it is used
from a source checkout), the version remains unknown.
"""
import importlib.metadata
from typing import Optional

version: Optional[str] = None

try:
    name, *_ = __name__.split('.')  # usually "kubestate", unless renamed/forked.
    version = importlib.metadata.version(name)
except importlib.metadata.PackageNotFoundError:
    pass
