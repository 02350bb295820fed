"""
Discovery data structures and models
"""

from typing import Optional, Tuple
from dataclasses import dataclass, field

from multidict import CIMultiDict
from yarl import URL

SSDP_METHOD_SEARCH = "M-SEARCH"
SSDP_DISCOVER = "ssdp:discover"
SEARCH_TARGET_ROOT_DEVICE = "upnp:rootdevice"


@dataclass(frozen=True)
class DiscoveryRequest:
    """An SSDP M-SEARCH probe aimed at a single host"""
    host: str  # "host:port", sent as the HOST header
    method: str = SSDP_METHOD_SEARCH
    search_target: str = SEARCH_TARGET_ROOT_DEVICE
    discover_directive: str = SSDP_DISCOVER
    max_wait_seconds: int = 5
    num_sends: int = 2
    window_padding_ms: int = 100

    @property
    def window_seconds(self) -> float:
        """Total time responses are collected for"""
        return self.max_wait_seconds + self.window_padding_ms / 1000.0

    def encode(self) -> bytes:
        """
        Render the request as it goes on the wire.

        Header names are written exactly as UPnP spells them; SSDP receivers
        are allowed to match them case-sensitively.
        """
        lines = [
            f"{self.method} * HTTP/1.1",
            f"HOST: {self.host}",
            f'MAN: "{self.discover_directive}"',
            f"MX: {self.max_wait_seconds}",
            f"ST: {self.search_target}",
            "",
            "",
        ]
        return "\r\n".join(lines).encode("ascii")


@dataclass
class DiscoveryResponse:
    """One HTTP-over-UDP answer to an M-SEARCH"""
    status: int
    reason: str
    headers: CIMultiDict
    sender: Tuple[str, int]
    location: Optional[URL] = None

    @property
    def usn(self) -> str:
        return self.headers.get("USN", "").strip()

    @property
    def dedup_key(self) -> str:
        """USN when the responder sent one, the parsed location otherwise"""
        return self.usn or str(self.location)


@dataclass(frozen=True)
class GatewayLocation:
    """Device description URL of the selected gateway, rewritten to the probed host"""
    url: URL
    advertised_url: URL
    probed_host: str
    usn: str = ""
    server: str = ""
    responses_kept: int = field(default=1, compare=False)

    def __str__(self) -> str:
        return str(self.url)
