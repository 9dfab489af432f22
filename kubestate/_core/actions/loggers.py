"""
Logging of the library's activities, optionally per-resource.

Every message about a specific resource is logged via an object logger,
which carries the resource's reference (kind, name, namespace) as an extra.
The formatters then render it as a ``[namespace/name]`` prefix (text logs)
or as a separate field (JSON logs), so that the messages about different
resources can be told apart when many convergences run in parallel.
"""
import copy
import enum
import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, MutableMapping, Optional, \
                   Sequence, TextIO, Tuple, Union

from pythonjsonlogger.core import RESERVED_ATTRS
from pythonjsonlogger.json import JsonFormatter

from kubestate._cogs.helpers import typedefs

logger = logging.getLogger('kubestate.objects')

# The record's attribute with the object reference; never dumped as is.
REF_ATTR = 'k8s_ref'

# Where the object reference goes in the JSON logs unless configured otherwise.
DEFAULT_JSON_REFKEY = 'object'

# The loggers that are too noisy unless debugging.
NOISY_LOGGERS: Sequence[str] = ['asyncio']

# The severities as the log collectors understand them, from the highest threshold down.
SEVERITIES: Sequence[Tuple[int, str]] = [
    (logging.DEBUG, 'debug'),
    (logging.INFO, 'info'),
    (logging.WARNING, 'warn'),
    (logging.ERROR, 'error'),
]


class LogFormat(enum.Enum):
    """ The formats available on the command line. """
    PLAIN = '%(message)s'
    FULL = '[%(asctime)s] %(name)-20.20s [%(levelname)-8.8s] %(message)s'
    JSON = '-json-'  # a marker only: JSON logs are not %-formatted


class ObjectFormatter(logging.Formatter):
    """ A base class of our own formatters, e.g. to find our handlers. """


class ObjectTextFormatter(ObjectFormatter, logging.Formatter):
    pass


class ObjectJsonFormatter(ObjectFormatter, JsonFormatter):
    """
    JSON logs with the object reference as a nested object under the ``refkey``.
    """

    def __init__(self, *args: Any, refkey: Optional[str] = None, **kwargs: Any) -> None:
        kwargs['reserved_attrs'] = set(kwargs.get('reserved_attrs', RESERVED_ATTRS)) | {REF_ATTR}
        kwargs.setdefault('timestamp', True)
        super().__init__(*args, **kwargs)
        self._refkey = refkey or DEFAULT_JSON_REFKEY

    def add_fields(
            self,
            log_record: Dict[str, Any],
            record: logging.LogRecord,
            message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        ref = getattr(record, REF_ATTR, None)
        if ref is not None:
            log_record[self._refkey] = ref
        log_record.setdefault('severity', get_severity(record.levelno))


class ObjectPrefixingMixin(ObjectFormatter):
    """ Prepend the messages about the objects with ``[namespace/name]``. """

    def format(self, record: logging.LogRecord) -> str:
        ref = getattr(record, REF_ATTR, None)
        if ref is not None:
            record = copy.copy(record)  # other handlers must see the original message
            record.msg = f"{make_prefix(ref)} {record.msg}"
        return super().format(record)


class ObjectPrefixingTextFormatter(ObjectPrefixingMixin, ObjectTextFormatter):
    pass


class ObjectPrefixingJsonFormatter(ObjectPrefixingMixin, ObjectJsonFormatter):
    pass


def get_severity(levelno: int) -> str:
    for threshold, severity in SEVERITIES:
        if levelno <= threshold:
            return severity
    return 'fatal'


def make_prefix(ref: Mapping[str, Any]) -> str:
    name = ref.get('name') or ''
    namespace = ref.get('namespace')
    return f"[{namespace}/{name}]" if namespace else f"[{name}]"


class ObjectLogger(typedefs.LoggerAdapter):
    """
    A logger/adapter to carry the object identifiers for formatting.

    The body can be a full resource or a template: only the fields
    present in it are used (missing ones are ``None``). The reference is
    copied at creation, so later changes of the body do not affect the logs.
    """

    def __init__(self, *, body: Optional[Mapping[str, Any]] = None) -> None:
        body = body or {}
        metadata = body.get('metadata') or {}
        ref = {
            'apiVersion': body.get('apiVersion'),
            'kind': body.get('kind'),
            'name': metadata.get('name'),
            'uid': metadata.get('uid'),
            'namespace': metadata.get('namespace'),
        }
        super().__init__(logger, {REF_ATTR: ref})

    def process(
            self,
            msg: str,
            kwargs: MutableMapping[str, Any],
    ) -> Tuple[str, MutableMapping[str, Any]]:
        # The stdlib adapters replace the per-call extras; we keep both.
        kwargs['extra'] = {**(self.extra or {}), **kwargs.get('extra', {})}
        return msg, kwargs


# Our own handlers are replaced on re-configuration, e.g. in the CLI tests,
# where the old handlers would write to the closed streams of the previous runs.
if TYPE_CHECKING:
    class _KubestateStreamHandler(logging.StreamHandler[TextIO]):
        pass
else:
    class _KubestateStreamHandler(logging.StreamHandler):
        pass


def configure(
        debug: Optional[bool] = None,
        verbose: Optional[bool] = None,
        quiet: Optional[bool] = None,
        log_format: Union[LogFormat, str] = LogFormat.FULL,
        log_prefix: Optional[bool] = None,
        log_refkey: Optional[str] = None,
) -> None:
    """ Configure the root logger for the command-line usage. """
    handler = _KubestateStreamHandler()
    handler.setFormatter(make_formatter(log_format=log_format,
                                        log_prefix=log_prefix,
                                        log_refkey=log_refkey))

    root = logging.getLogger()
    root.handlers[:] = [h for h in root.handlers if not isinstance(h, _KubestateStreamHandler)]
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug or verbose else
                  logging.WARNING if quiet else
                  logging.INFO)

    for name in NOISY_LOGGERS:
        noisy = logging.getLogger(name)
        noisy.propagate = bool(debug)
        if not debug:
            noisy.handlers[:] = [logging.NullHandler()]


def make_formatter(
        log_format: Union[LogFormat, str] = LogFormat.FULL,
        log_prefix: Optional[bool] = None,
        log_refkey: Optional[str] = None,
) -> ObjectFormatter:
    """
    Create a formatter for the format; the text logs are prefixed by default.
    """
    if log_prefix is None:
        log_prefix = log_format is not LogFormat.JSON

    if log_format is LogFormat.JSON:
        json_cls = ObjectPrefixingJsonFormatter if log_prefix else ObjectJsonFormatter
        return json_cls(refkey=log_refkey)

    fmt = log_format.value if isinstance(log_format, LogFormat) else log_format
    if not isinstance(fmt, str):
        raise ValueError(f"Unsupported log format: {log_format!r}")
    text_cls = ObjectPrefixingTextFormatter if log_prefix else ObjectTextFormatter
    return text_cls(fmt)
