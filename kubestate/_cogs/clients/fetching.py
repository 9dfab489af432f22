from typing import Any, Dict, List, Mapping, Optional, cast

from kubestate._cogs.clients import api, auth, decoding
from kubestate._cogs.configs import configuration
from kubestate._cogs.helpers import typedefs
from kubestate._cogs.structs import bodies, references


async def list_objs(
        *,
        context: auth.APIContext,
        settings: configuration.Settings,
        resource: references.Resource,
        namespace: references.Namespace = None,
        labels: Optional[bodies.Labels] = None,
        template: Optional[Mapping[str, Any]] = None,
        view: Optional[decoding.View] = None,
        logger: typedefs.Logger,
) -> List[Any]:
    """
    List the objects of specific resource type, optionally filtered.

    The namespace-scoped call is used if the namespace is known (either
    explicitly, or from the template's metadata) and the resource is namespaced.
    Otherwise, the cluster-wide call is used.

    The labels are filtered server-side, the template is matched client-side.
    The list items are returned as they are (or as projected by the view).
    """
    if namespace is None and resource.namespaced:
        namespace = cast(references.Namespace, bodies.get_namespace(template))

    params: Dict[str, str] = {}
    selector = bodies.build_labels_selector(labels)
    if selector is not None:
        params['labelSelector'] = selector

    items: List[Any] = await api.get(
        url=resource.get_url(namespace=namespace, params=params),
        template=template,
        view=view,
        context=context,
        settings=settings,
        logger=logger,
    )
    return items
