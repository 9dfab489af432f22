"""
The HTTP session with the credentials applied to it.
"""
import base64
import contextlib
import os
import ssl
import tempfile
from typing import Any, Dict, Optional, Union

import aiohttp

from kubestate._cogs.helpers import versions
from kubestate._cogs.structs import credentials


class APIContext:
    """
    One aiohttp session per client, plus what is needed to build the URLs.

    The session is created in the constructor, so the context must be created
    when the event loop is running (i.e. inside a coroutine). It is shared
    by all the requests of a client, and must be closed when not needed.
    """

    session: aiohttp.ClientSession
    server: str
    default_namespace: Optional[str]

    def __init__(self, info: credentials.ConnectionInfo) -> None:
        super().__init__()
        self.server = info.server
        self.default_namespace = info.default_namespace
        auth: Optional[aiohttp.BasicAuth] = None
        if info.username and info.password:
            auth = aiohttp.BasicAuth(info.username, info.password)
        self.session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(limit=0, ssl=make_ssl_context(info)),
            headers=make_headers(info),
            auth=auth,
        )

    async def __aenter__(self) -> "APIContext":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()

    @property
    def closed(self) -> bool:
        return self.session.closed

    async def close(self) -> None:
        await self.session.close()


def make_headers(info: credentials.ConnectionInfo) -> Dict[str, str]:
    headers = {'User-Agent': f'kubestate/{versions.version or "unknown"}'}
    if info.scheme or info.token:
        scheme = info.scheme or 'Bearer'
        headers['Authorization'] = f'{scheme} {info.token}' if info.token else scheme
    return headers


def make_ssl_context(info: credentials.ConnectionInfo) -> ssl.SSLContext:
    context = ssl.create_default_context(
        purpose=ssl.Purpose.SERVER_AUTH,
        cafile=os.path.expanduser(info.ca_path) if info.ca_path else None,
        cadata=decode_to_pem(info.ca_data) if info.ca_data is not None else None,
    )

    # The client certificate is loaded from files only, so the inline data go to temp files.
    # Nothing is written if there is no inline data: the filesystem can be read-only.
    with contextlib.ExitStack() as stack:
        cert_path = info.certificate_path or _dump(stack, info.certificate_data)
        pkey_path = info.private_key_path or _dump(stack, info.private_key_data)
        if cert_path and pkey_path:
            context.load_cert_chain(certfile=cert_path, keyfile=pkey_path)

    if info.insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def _dump(stack: contextlib.ExitStack, data: Optional[credentials.RawData]) -> Optional[str]:
    if not data:
        return None
    f = stack.enter_context(tempfile.NamedTemporaryFile(buffering=0))
    f.write(decode_to_pem(data).encode('ascii'))
    return f.name


def decode_to_pem(data: Union[str, bytes]) -> str:
    """ Get the PEM text as is, or decode it from base64 (as in the kubeconfigs). """
    text = data.decode('ascii') if isinstance(data, bytes) else data
    if text.startswith('-----BEGIN '):
        return text
    return base64.b64decode(text).decode('ascii')
