import dataclasses
import urllib.parse
from typing import Iterator, List, Mapping, NewType, Optional

# A namespace known by name, e.g. from a template or from the credentials.
NamespaceName = NewType('NamespaceName', str)

# What the API calls accept: a namespace, or `None` for the cluster-wide calls.
Namespace = Optional[NamespaceName]


@dataclasses.dataclass(frozen=True)
class Resource:
    """
    A resource kind as addressed in the K8s API.

    The group, the version, and the plural name are enough to build the URLs.
    The kind is only informational (e.g. for looking the clients up by it).
    """

    group: str
    """ The API group, e.g. ``"apps"``; empty for the core API (``""``). """

    version: str
    """ The API version, e.g. ``"v1"``. """

    plural: str
    """ The plural name, e.g. ``"pods"``: the last segment of the list URLs. """

    kind: Optional[str] = None
    """ The kind as in the bodies, e.g. ``"Pod"``. """

    namespaced: bool = True
    """ Whether the resources live in namespaces or in the whole cluster. """

    def __repr__(self) -> str:
        return f'{self.plural}.{self.version}.{self.group}'.strip('.')

    def __iter__(self) -> Iterator[str]:
        yield self.group
        yield self.version
        yield self.plural

    @property
    def api_prefix(self) -> str:
        # The legacy core API lives apart from all the named groups.
        return '/api' if not self.group and self.version == 'v1' else f'/apis/{self.group}'

    def get_url(
            self,
            *,
            server: Optional[str] = None,
            namespace: Namespace = None,
            name: Optional[str] = None,
            subresource: Optional[str] = None,
            params: Optional[Mapping[str, str]] = None,
    ) -> str:
        """
        Build the API URL for a list of resources or for a single resource.

        Without a name, it is the list URL: in a namespace or cluster-wide.
        The namespace is ignored for the cluster-scoped resources; it is
        required for a single namespaced resource. The URL is relative to
        the server unless the server is given.
        """
        if subresource is not None and name is None:
            raise ValueError("Subresources can be used only with specific resources by their name.")
        if self.namespaced and namespace is None and name is not None:
            raise ValueError("Specific namespaces are required for specific namespaced resources.")

        segments: List[str] = [self.api_prefix.rstrip('/'), self.version]
        if self.namespaced and namespace is not None:
            segments += ['namespaces', namespace]
        segments.append(self.plural)
        if name is not None:
            segments.append(name)
        if subresource is not None:
            segments.append(subresource)

        url = '/'.join(segments)
        if params:
            url += '?' + urllib.parse.urlencode(params, encoding='utf-8')
        if server is not None:
            url = server.rstrip('/') + url
        return url


# The built-in kinds served by `KubeClient` out of the box.
PODS = Resource('', 'v1', 'pods', kind='Pod')
SERVICES = Resource('', 'v1', 'services', kind='Service')
REPLICATION_CONTROLLERS = Resource('', 'v1', 'replicationcontrollers', kind='ReplicationController')
EVENTS = Resource('', 'v1', 'events', kind='Event')
NAMESPACES = Resource('', 'v1', 'namespaces', kind='Namespace', namespaced=False)
NODES = Resource('', 'v1', 'nodes', kind='Node', namespaced=False)

BUILTINS: Mapping[str, Resource] = {
    resource.plural: resource
    for resource in [PODS, SERVICES, REPLICATION_CONTROLLERS, EVENTS, NAMESPACES, NODES]
}
