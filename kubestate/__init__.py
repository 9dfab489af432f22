"""
The main kubestate module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from kubestate._cogs.configs.configuration import (
    Settings,
    NetworkingSettings,
    PollingSettings,
    WatchingSettings,
    DecodingSettings,
)
from kubestate._cogs.helpers.typedefs import (
    Logger,
    Condition,
)
from kubestate._cogs.helpers.versions import (
    version as __version__,
)
from kubestate._cogs.clients.errors import (
    APIError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
    APIFailureStatus,
    DecodeError,
    TransportError,
    ResourceExistsError,
    ResourceAbsentError,
)
from kubestate._cogs.clients.decoding import (
    decode,
    iter_jsonlines,
    read_document,
)
from kubestate._cogs.structs.credentials import (
    ConnectionInfo,
    LoginError,
)
from kubestate._cogs.structs.matching import (
    match,
    match_resource,
    merge,
)
from kubestate._cogs.structs.patches import (
    PatchType,
)
from kubestate._cogs.structs.references import (
    Resource,
)
from kubestate._core.actions.loggers import (
    configure,
    LogFormat,
    ObjectLogger,
)
from kubestate._core.convergence import (
    conditions,
)
from kubestate._core.convergence.changing import (
    change_state,
)
from kubestate._core.convergence.errors import (
    ConditionTimeoutError,
    ContractError,
)
from kubestate._core.convergence.polling import (
    when,
)
from kubestate._core.intents.piggybacking import (
    login,
    login_with_kubeconfig,
    login_with_service_account,
)
from kubestate._kits.clients import (
    KubeClient,
    ResourceClient,
)

__all__ = [
    'Settings', 'NetworkingSettings', 'PollingSettings', 'WatchingSettings', 'DecodingSettings',
    'Logger', 'Condition',
    'APIError', 'APIUnauthorizedError', 'APIForbiddenError', 'APINotFoundError',
    'APIConflictError', 'APIFailureStatus',
    'DecodeError', 'TransportError',
    'ResourceExistsError', 'ResourceAbsentError',
    'decode', 'iter_jsonlines', 'read_document',
    'ConnectionInfo', 'LoginError',
    'match', 'match_resource', 'merge',
    'PatchType',
    'Resource',
    'configure', 'LogFormat', 'ObjectLogger',
    'conditions',
    'change_state', 'when',
    'ConditionTimeoutError', 'ContractError',
    'login', 'login_with_kubeconfig', 'login_with_service_account',
    'KubeClient', 'ResourceClient',
]
