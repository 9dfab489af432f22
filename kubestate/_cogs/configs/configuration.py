"""
All configuration flags, options, settings to fine-tune the clients.

The settings are grouped by the activity they tune: networking, polling,
watching, decoding.

The settings are passed explicitly to the clients and the functions.
They are never read from the environment or from files implicitly.
All of them have reasonable defaults, so ``Settings()`` is usually enough.
"""
import dataclasses
from typing import Optional


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: Optional[float] = 5 * 60  # == aiohttp.client.DEFAULT_TIMEOUT
    """
    A timeout for a single regular (non-streaming) API request, in seconds.
    ``None`` disables the timeout.
    """

    connect_timeout: Optional[float] = None
    """
    A timeout for establishing the TCP connection to the API, in seconds.
    """


@dataclasses.dataclass
class PollingSettings:
    """
    Defaults for waiting until a condition is met (see ``when()``).
    """

    times: int = 60
    """
    How many times to fetch the resources and check the condition at most.
    """

    interval: float = 1.0
    """
    How long to sleep between the attempts, in seconds.

    The total time of waiting is thus bounded by ``times * interval``,
    plus the time of the fetching requests themselves.
    """


@dataclasses.dataclass
class WatchingSettings:

    server_timeout: Optional[float] = None
    """
    The maximum duration of one streaming request, as requested from the server.
    ``None`` leaves it to the server (usually, a random duration of 30-60 minutes).
    """

    client_timeout: Optional[float] = None
    """
    The total duration of one watch-stream on the client side, in seconds.
    """

    connect_timeout: Optional[float] = None
    """
    A timeout for connecting when starting a watch-stream, in seconds.
    If ``None``, the networking timeouts apply.
    """


@dataclasses.dataclass
class DecodingSettings:

    chunk_size: int = 1024 * 1024
    """
    How many bytes to read from the response stream at once.

    The lines of the watch-streams are re-assembled from the chunks,
    so the chunk size does not limit the size of the individual records.
    """


@dataclasses.dataclass
class Settings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    polling: PollingSettings = dataclasses.field(default_factory=PollingSettings)
    watching: WatchingSettings = dataclasses.field(default_factory=WatchingSettings)
    decoding: DecodingSettings = dataclasses.field(default_factory=DecodingSettings)
