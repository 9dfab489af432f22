"""
The credentials and the connection flags for the K8s API.

Only what the HTTP client needs is kept here: the server's URL, the TLS
verification settings, the client certificate, and the authorization
(a token with an optional scheme, or a username & password).
Plus the default namespace, as the kubeconfigs and service accounts define it.

The credentials are given to the clients explicitly. If they are not given,
the clients look for them in the usual places (see :mod:`piggybacking`).
"""
import dataclasses
from typing import Optional, Union

# The kubeconfigs give base64-encoded strings; the PEM data can be either str or bytes.
RawData = Union[str, bytes]


class LoginError(Exception):
    """ No usable credentials are found, or they are malformed. """


@dataclasses.dataclass(frozen=True)
class ConnectionInfo:
    """
    How to reach the API and identify ourselves to it.
    """
    server: str  # the base URL, e.g. "https://localhost:6443"
    ca_path: Optional[str] = None
    ca_data: Optional[RawData] = None
    insecure: Optional[bool] = None  # i.e. skip the TLS verification
    username: Optional[str] = None
    password: Optional[str] = None
    scheme: Optional[str] = None  # for the Authorization header; "Bearer" if only the token is set
    token: Optional[str] = None
    certificate_path: Optional[str] = None
    certificate_data: Optional[RawData] = None
    private_key_path: Optional[str] = None
    private_key_data: Optional[RawData] = None
    default_namespace: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        """ Whether there is at least one way to identify ourselves to the API. """
        has_token = bool(self.token or self.scheme)
        has_basic = bool(self.username and self.password)
        has_cert = bool((self.certificate_path or self.certificate_data) and
                        (self.private_key_path or self.private_key_data))
        return has_token or has_basic or has_cert
