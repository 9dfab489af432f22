from typing import Any, Mapping, Optional, cast

from kubestate._cogs.clients import api, auth
from kubestate._cogs.configs import configuration
from kubestate._cogs.helpers import typedefs
from kubestate._cogs.structs import bodies, references


async def create_obj(
        *,
        context: auth.APIContext,
        settings: configuration.Settings,
        resource: references.Resource,
        body: Mapping[str, Any],
        logger: typedefs.Logger,
) -> Optional[bodies.RawBody]:
    """
    Create a resource from its full body (the namespace is taken from the body).
    """
    namespace = cast(references.Namespace, bodies.get_namespace(body))
    if resource.namespaced and namespace is None:
        raise ValueError(f"A namespace is required in the metadata to create {resource!r}.")

    created_body: Optional[bodies.RawBody] = await api.post(
        url=resource.get_url(namespace=namespace if resource.namespaced else None),
        payload=body,
        context=context,
        settings=settings,
        logger=logger,
    )
    return created_body
