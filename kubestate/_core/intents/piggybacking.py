"""
Finding the credentials where kubectl and the in-cluster pods have them.

Only the raw credentials are read: the tokens, the certificates, the basic
auth. No auth-providers or exec-plugins are executed; the tokens that they
have cached in the kubeconfig are used as they are, even if expired.

This is done only when the client is created without explicit credentials.
If nothing usable is found, `LoginError` is raised right away.
"""
import os
from typing import Any, Dict, List, Mapping, Optional

import yaml

from kubestate._cogs.helpers import typedefs
from kubestate._cogs.structs import credentials

# Module-level, so that the tests can patch them.
# See https://kubernetes.io/docs/tasks/run-application/access-api-from-pod/
SERVICE_ACCOUNT_SERVER = 'https://kubernetes.default.svc'
SERVICE_ACCOUNT_TOKEN_PATH = '/var/run/secrets/kubernetes.io/serviceaccount/token'
SERVICE_ACCOUNT_NAMESPACE_PATH = '/var/run/secrets/kubernetes.io/serviceaccount/namespace'
SERVICE_ACCOUNT_CA_PATH = '/var/run/secrets/kubernetes.io/serviceaccount/ca.crt'
DEFAULT_KUBECONFIG_PATH = '~/.kube/config'


def login(*, logger: typedefs.Logger) -> credentials.ConnectionInfo:
    """
    Get the credentials from the service account (preferred) or the kubeconfig.
    """
    if has_service_account():
        info = login_with_service_account()
        if info is not None and info.authenticated:
            logger.debug("Logged in with the in-cluster service account.")
            return info
        logger.debug("The in-cluster service account has no usable credentials.")
    if has_kubeconfig():
        info = login_with_kubeconfig()
        if info is not None and info.authenticated:
            logger.debug("Logged in with the kubeconfig.")
            return info
        logger.debug("The kubeconfig has no usable credentials.")
    raise credentials.LoginError("Cannot login: neither a service account nor a kubeconfig "
                                 "is available with usable credentials.")


def has_service_account() -> bool:
    return os.path.exists(SERVICE_ACCOUNT_TOKEN_PATH)


def login_with_service_account(**_: Any) -> Optional[credentials.ConnectionInfo]:
    """ Read the token, the namespace, and the CA of the pod's service account. """
    if not os.path.exists(SERVICE_ACCOUNT_TOKEN_PATH):
        return None
    token = _read_text(SERVICE_ACCOUNT_TOKEN_PATH)
    namespace = (_read_text(SERVICE_ACCOUNT_NAMESPACE_PATH)
                 if os.path.exists(SERVICE_ACCOUNT_NAMESPACE_PATH) else None)
    ca_path = SERVICE_ACCOUNT_CA_PATH if os.path.exists(SERVICE_ACCOUNT_CA_PATH) else None
    return credentials.ConnectionInfo(
        server=SERVICE_ACCOUNT_SERVER,
        ca_path=ca_path,
        token=token or None,
        default_namespace=namespace or None,
    )


def has_kubeconfig() -> bool:
    in_env = bool(os.environ.get('KUBECONFIG'))
    in_home = os.path.exists(os.path.expanduser(DEFAULT_KUBECONFIG_PATH))
    return in_env or in_home


def login_with_kubeconfig(**_: Any) -> Optional[credentials.ConnectionInfo]:
    """
    Read the credentials of the current context from the kubeconfig(s).

    ``$KUBECONFIG`` can list several files (as ``$PATH`` does); they are merged
    the way kubectl merges them: the first file that sets a value wins.
    Without ``$KUBECONFIG``, the default ``~/.kube/config`` is used if it exists.
    A listed file that is missing or malformed is an error.
    """
    paths = _get_kubeconfig_paths()
    if not paths:
        return None

    current_context: Optional[str] = None
    sections: Dict[str, Dict[str, Any]] = {'contexts': {}, 'clusters': {}, 'users': {}}
    for path in paths:
        with open(path, encoding='utf-8') as f:
            config = yaml.safe_load(f.read()) or {}
        current_context = current_context or config.get('current-context')
        for section, entries in sections.items():
            key = section[:-1]  # "contexts" -> "context", etc.
            for entry in config.get(section) or []:
                entries.setdefault(entry['name'], entry.get(key) or {})

    if current_context is None:
        raise credentials.LoginError('Current context is not set in kubeconfigs.')
    if current_context not in sections['contexts']:
        raise credentials.LoginError(f'Current context {current_context!r} is not defined.')
    context: Mapping[str, Any] = sections['contexts'][current_context]
    cluster: Mapping[str, Any] = sections['clusters'].get(context.get('cluster')) or {}
    user: Mapping[str, Any] = sections['users'].get(context.get('user')) or {}
    if not cluster.get('server'):
        raise credentials.LoginError(f'No server is defined for context {current_context!r}.')

    # The auth-providers (e.g. gcp, oidc) cache their last tokens here.
    provider = user.get('auth-provider') or {}
    provider_token = (provider.get('config') or {}).get('access-token')

    return credentials.ConnectionInfo(
        server=cluster['server'],
        ca_path=cluster.get('certificate-authority'),
        ca_data=cluster.get('certificate-authority-data'),
        insecure=cluster.get('insecure-skip-tls-verify'),
        certificate_path=user.get('client-certificate'),
        certificate_data=user.get('client-certificate-data'),
        private_key_path=user.get('client-key'),
        private_key_data=user.get('client-key-data'),
        username=user.get('username'),
        password=user.get('password'),
        token=user.get('token') or provider_token,
        default_namespace=context.get('namespace'),
    )


def _get_kubeconfig_paths() -> List[str]:
    envvar = os.environ.get('KUBECONFIG')
    if envvar:
        return [os.path.expanduser(path.strip()) for path in envvar.split(os.pathsep) if path.strip()]
    default_path = os.path.expanduser(DEFAULT_KUBECONFIG_PATH)
    return [default_path] if os.path.exists(default_path) else []


def _read_text(path: str) -> str:
    with open(path, encoding='utf-8') as f:
        return f.read().strip()
