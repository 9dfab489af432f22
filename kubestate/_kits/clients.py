"""
The public clients: one per cluster, and one per resource kind in it.

Usage::

    async with kubestate.KubeClient() as client:
        pod = await client.pods.create(template=pod_template)
        pod = await client.pods.when(kubestate.conditions.has_phase('Running'),
                                     template=pod_template)

All the resource clients of a cluster client share the same HTTP session,
which is opened on the first request and closed when the cluster client is.
"""
import logging
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Tuple, Union, cast

from kubestate._cogs.clients import auth, creating, decoding, deleting, errors, \
                                    fetching, patching, watching
from kubestate._cogs.configs import configuration
from kubestate._cogs.helpers import typedefs
from kubestate._cogs.structs import bodies, credentials, matching, patches, references
from kubestate._core.actions import loggers
from kubestate._core.convergence import changing, polling
from kubestate._core.intents import piggybacking

logger = logging.getLogger(__name__)


class ResourceClient:
    """
    Operations on the resources of one specific kind.

    The templates are partial resource bodies: they select the resources
    by their structural match (the ``kind`` field is ignored), and also
    define the namespace (``metadata.namespace``) and the name
    (``metadata.name``) where these are needed for the API calls.
    """

    def __init__(self, resource: references.Resource, *, client: "KubeClient") -> None:
        super().__init__()
        self.resource = resource
        self._client = client

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.resource!r}>'

    @property
    def settings(self) -> configuration.Settings:
        return self._client.settings

    async def get(
            self,
            *,
            template: Optional[Mapping[str, Any]] = None,
            namespace: Optional[str] = None,
            labels: Optional[bodies.Labels] = None,
            view: Optional[decoding.View] = None,
    ) -> List[Any]:
        """ List the resources, optionally filtered by the template and the labels. """
        context = await self._client.get_context()
        return await fetching.list_objs(
            context=context,
            settings=self.settings,
            resource=self.resource,
            namespace=cast(references.Namespace, namespace),
            labels=labels,
            template=template,
            view=view,
            logger=loggers.ObjectLogger(body=template),
        )

    async def create(
            self,
            *,
            template: Mapping[str, Any],
            force: bool = False,
    ) -> Optional[bodies.RawBody]:
        """
        Create a resource from the template, unless it already exists.

        With ``force``, the existence is not checked, and the API decides.
        """
        if not template or not template.get('kind'):
            raise ValueError("The template must exist and must contain the kind.")
        if self.resource.namespaced and not bodies.get_namespace(template):
            raise ValueError(f"A namespace is required in the metadata to create {self.resource!r}.")

        object_logger = loggers.ObjectLogger(body=template)
        if not force:
            existing = await self.get(template=template)
            if existing:
                raise errors.ResourceExistsError(f"The {self.resource!r} resource already exists.")

        context = await self._client.get_context()
        created = await creating.create_obj(
            context=context,
            settings=self.settings,
            resource=self.resource,
            body=template,
            logger=object_logger,
        )
        object_logger.info(f"Created a {self.resource!r} resource.")
        return created

    async def delete(
            self,
            *,
            template: Optional[Mapping[str, Any]] = None,
            name: Optional[str] = None,
            force: bool = False,
    ) -> Optional[Any]:
        """
        Delete a resource by its name (explicit or from the template).

        Unless ``force``, the resource must exist (i.e. match the template).
        """
        context = await self._client.get_context()
        template, name, namespace = self._identify(template=template, name=name, context=context)

        object_logger = loggers.ObjectLogger(body=template)
        if not force:
            existing = await self.get(template=template)
            if not existing:
                raise errors.ResourceAbsentError(f"The {self.resource!r} resource does not exist.")

        deleted = await deleting.delete_obj(
            context=context,
            settings=self.settings,
            resource=self.resource,
            namespace=namespace,
            name=name,
            logger=object_logger,
        )
        object_logger.info(f"Deleted a {self.resource!r} resource.")
        return deleted

    async def patch(
            self,
            *,
            patch: Mapping[str, Any],
            type: Union[str, patches.PatchType] = patches.PatchType.MERGE,
            template: Optional[Mapping[str, Any]] = None,
            name: Optional[str] = None,
    ) -> Optional[bodies.RawBody]:
        """
        Patch an existing resource.

        The type is either ``merge`` (a strategic merge patch, sent as is),
        or one of ``add``, ``replace``, ``remove`` (a JSON-patch operation
        on the only leaf field of the patch object).
        """
        patch_type = patches.PatchType(type)
        context = await self._client.get_context()
        template, name, namespace = self._identify(template=template, name=name, context=context)
        payload = patches.build_payload(patch, patch_type)  # fail early, before any requests

        object_logger = loggers.ObjectLogger(body=template)
        existing = await self.get(template=template)
        if not existing:
            raise errors.ResourceAbsentError(f"The {self.resource!r} resource does not exist.")

        object_logger.debug(f"Patching with: {payload!r}")
        return await patching.patch_obj(
            context=context,
            settings=self.settings,
            resource=self.resource,
            namespace=namespace,
            name=name,
            patch=patch,
            type=patch_type,
            logger=object_logger,
        )

    async def update(
            self,
            old: Mapping[str, Any],
            delta: Mapping[str, Any],
    ) -> Optional[bodies.RawBody]:
        """
        Re-create the resource with the top-level fields replaced by the delta.
        """
        new = dict(old, **delta)
        await self.delete(template=old)
        return await self.create(template=new, force=True)

    async def watch(
            self,
            *,
            template: Optional[Mapping[str, Any]] = None,
            namespace: Optional[str] = None,
            labels: Optional[bodies.Labels] = None,
            view: Optional[decoding.View] = None,
    ) -> AsyncIterator[Any]:
        """ Stream the watch-events (``{type, object}``) as they happen. """
        context = await self._client.get_context()
        async for event in watching.watch_objs(
            context=context,
            settings=self.settings,
            resource=self.resource,
            namespace=cast(references.Namespace, namespace),
            labels=labels,
            template=template,
            view=view,
        ):
            yield event

    async def when(
            self,
            condition: typedefs.Condition,
            *,
            template: Optional[Mapping[str, Any]] = None,
            labels: Optional[bodies.Labels] = None,
            times: Optional[int] = None,
            interval: Optional[float] = None,
    ) -> Any:
        """
        Wait until the resources matching the template satisfy the condition.
        """
        async def fetch() -> List[Any]:
            return await self.get(template=template, labels=labels)

        return await polling.when(
            fetch=fetch,
            condition=condition,
            times=times if times is not None else self.settings.polling.times,
            interval=interval if interval is not None else self.settings.polling.interval,
            logger=loggers.ObjectLogger(body=template),
        )

    async def change_state(
            self,
            *,
            state: Optional[Mapping[str, Any]],
            action: Optional[Callable[..., Any]],
            delta: Optional[Mapping[str, Any]] = None,
            condition: Optional[typedefs.Condition] = None,
            action_opts: Optional[Mapping[str, Any]] = None,
            times: Optional[int] = None,
            interval: Optional[float] = None,
    ) -> Any:
        """
        Perform the action and wait until the resource reaches the desired state.

        The action is usually another operation of this client, e.g.::

            await client.pods.change_state(state=pod, action=client.pods.patch,
                                           action_opts={'patch': {...}},
                                           delta={'status': {'phase': 'Running'}})

        The ``state`` is also the template for listing the resources, so it must
        hold only the fields that the listed items carry (e.g. the kind and
        the metadata, but not the ``apiVersion``). A full body for the action
        goes to ``action_opts={'template': body}``; it is merged with ``state``.
        """
        async def fetch() -> List[Any]:
            return await self.get(template=state)

        return await changing.change_state(
            fetch=fetch,
            state=state,
            action=action,
            delta=delta,
            condition=condition,
            action_opts=action_opts,
            times=times if times is not None else self.settings.polling.times,
            interval=interval if interval is not None else self.settings.polling.interval,
            logger=loggers.ObjectLogger(body=state),
        )

    def _identify(
            self,
            *,
            template: Optional[Mapping[str, Any]],
            name: Optional[str],
            context: auth.APIContext,
    ) -> Tuple[Mapping[str, Any], str, references.Namespace]:
        """
        Resolve the name & namespace of a specific resource, and the template to find it.
        """
        name = name or bodies.get_name(template)
        if not name:
            raise ValueError("The name of the resource must be specified (explicitly or in the template).")
        identity: Dict[str, Any] = {'name': name}

        namespace: references.Namespace = None
        if self.resource.namespaced:
            namespace_name = bodies.get_namespace(template) or context.default_namespace
            if not namespace_name:
                raise ValueError(f"A namespace is required for {self.resource!r} "
                                 f"(in the template or as the default one).")
            namespace = references.NamespaceName(namespace_name)
            identity['namespace'] = namespace

        template = matching.merge(template or {}, {'metadata': identity})
        return template, name, namespace


class KubeClient:
    """
    A client for one cluster with a resource client per each built-in kind.

    If no connection info is given, it is taken from the in-cluster service
    account or the kubeconfig. If neither is found, `LoginError` is raised.
    """

    pods: ResourceClient
    services: ResourceClient
    replication_controllers: ResourceClient
    events: ResourceClient
    namespaces: ResourceClient
    nodes: ResourceClient

    def __init__(
            self,
            info: Optional[credentials.ConnectionInfo] = None,
            *,
            settings: Optional[configuration.Settings] = None,
    ) -> None:
        super().__init__()
        self.info = info if info is not None else piggybacking.login(logger=logger)
        self.settings = settings if settings is not None else configuration.Settings()
        self._context: Optional[auth.APIContext] = None
        self._resources: Dict[str, ResourceClient] = {}
        for plural, resource in references.BUILTINS.items():
            self._resources[plural] = ResourceClient(resource, client=self)
        self.pods = self._resources[references.PODS.plural]
        self.services = self._resources[references.SERVICES.plural]
        self.replication_controllers = self._resources[references.REPLICATION_CONTROLLERS.plural]
        self.events = self._resources[references.EVENTS.plural]
        self.namespaces = self._resources[references.NAMESPACES.plural]
        self.nodes = self._resources[references.NODES.plural]

    def __getitem__(self, name: str) -> ResourceClient:
        """ Get a resource client by the resource's plural or kind, case-insensitive. """
        for resource_client in self._resources.values():
            resource = resource_client.resource
            if name.lower() in {resource.plural, (resource.kind or '').lower()}:
                return resource_client
        raise KeyError(name)

    async def __aenter__(self) -> "KubeClient":
        await self.get_context()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    async def get_context(self) -> auth.APIContext:
        # The HTTP session can only be created when the event loop is running.
        if self._context is None or self._context.closed:
            self._context = auth.APIContext(self.info)
        return self._context

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
