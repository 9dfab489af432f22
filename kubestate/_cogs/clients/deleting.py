from typing import Any, Optional

from kubestate._cogs.clients import api, auth
from kubestate._cogs.configs import configuration
from kubestate._cogs.helpers import typedefs
from kubestate._cogs.structs import references


async def delete_obj(
        *,
        context: auth.APIContext,
        settings: configuration.Settings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        logger: typedefs.Logger,
) -> Optional[Any]:
    """
    Delete a resource by its name.

    Returns what the API has returned: usually, the deleted object
    (possibly with the deletion timestamp set), or a ``Status`` object.
    """
    deleted: Optional[Any] = await api.delete(
        url=resource.get_url(namespace=namespace if resource.namespaced else None, name=name),
        context=context,
        settings=settings,
        logger=logger,
    )
    return deleted
