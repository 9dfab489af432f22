from typing import Any, Mapping, Optional

from kubestate._cogs.clients import api, auth
from kubestate._cogs.configs import configuration
from kubestate._cogs.helpers import typedefs
from kubestate._cogs.structs import bodies, patches, references


async def patch_obj(
        *,
        context: auth.APIContext,
        settings: configuration.Settings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        patch: Mapping[str, Any],
        type: patches.PatchType = patches.PatchType.MERGE,
        logger: typedefs.Logger,
) -> Optional[bodies.RawBody]:
    """
    Patch a resource of specific kind.

    The patch is a sparse body: for merge-patches, it is sent as is;
    for the JSON-patch operations (add/replace/remove), it must contain
    exactly one leaf field, which becomes the path of the operation.

    Returns the patched body as reported by the server.
    """
    payload = patches.build_payload(patch, type)
    patched_body: Optional[bodies.RawBody] = await api.patch(
        url=resource.get_url(namespace=namespace if resource.namespaced else None, name=name),
        headers={'Content-Type': type.content_type},
        payload=payload,
        context=context,
        settings=settings,
        logger=logger,
    )
    return patched_body
