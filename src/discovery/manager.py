"""
Gateway discovery over SSDP: probe one host, filter the answers and locate its
device description
"""

import logging
import time
from typing import Dict, Iterable, List, Optional, Union

from yarl import URL

from .exceptions import NoDiscoveryResponse, SSDPTransportError
from .models import DiscoveryRequest, DiscoveryResponse, GatewayLocation, SEARCH_TARGET_ROOT_DEVICE
from .ssdp import Datagram, SSDPParseError, UDPTransport, parse_location, parse_ssdp_response

logger = logging.getLogger(__name__)

DEFAULT_SSDP_PORT = ":1900"


def parse_port(port: Union[str, int]) -> int:
    """Accept ':1900', '1900' or 1900"""
    text = str(port).strip()
    if text.startswith(':'):
        text = text[1:]
    try:
        value = int(text)
    except ValueError:
        raise SSDPTransportError(f"Invalid SSDP port: {port!r}")
    if not 0 < value < 65536:
        raise SSDPTransportError(f"SSDP port out of range: {port!r}")
    return value


def rewrite_location(location: URL, probed_host: str) -> URL:
    """
    Point an advertised description URL at the host that was actually probed.

    Gateways often advertise an internal or loopback address. The advertised
    port is kept when one is given explicitly, otherwise the URL gets the bare
    probed host. An explicit port equal to the scheme default may be dropped
    from the rendered URL by yarl; it still resolves to the same port.
    """
    port = location.explicit_port
    rewritten = location.with_host(probed_host)
    return rewritten.with_port(port)


class GatewayDiscovery:
    """Finds the device description of the gateway answering at a given host"""

    def __init__(self, config: Optional[Dict] = None, transport=None, log: Optional[logging.Logger] = None):
        config = config or {}
        self.max_wait_seconds = config.get('max_wait_seconds', 5)
        self.num_sends = config.get('num_sends', 2)
        self.window_padding_ms = config.get('window_padding_ms', 100)
        self.search_target = config.get('search_target', SEARCH_TARGET_ROOT_DEVICE)
        self.transport = transport or UDPTransport()
        self.log = log or logger

    def build_request(self, host: str, port: int) -> DiscoveryRequest:
        return DiscoveryRequest(
            host=f"{host}:{port}",
            search_target=self.search_target,
            max_wait_seconds=self.max_wait_seconds,
            num_sends=self.num_sends,
            window_padding_ms=self.window_padding_ms,
        )

    async def discover(self, host: str, port: Union[str, int] = DEFAULT_SSDP_PORT) -> GatewayLocation:
        """
        Probe host:port with M-SEARCH and return the corrected location of the
        first distinct responder.

        Raises SSDPTransportError if the probe cannot be exchanged and
        NoDiscoveryResponse if nothing usable came back.
        """
        if not host:
            raise SSDPTransportError("No host given to probe")
        port_number = parse_port(port)
        request = self.build_request(host, port_number)

        start_time = time.time()
        datagrams = await self.transport.request(
            request.encode(), (host, port_number), request.window_seconds, request.num_sends
        )
        duration = time.time() - start_time
        self.log.debug(f"SSDP search of {request.host}: {len(datagrams)} datagrams in {duration:.1f}s")

        responses = self.filter_responses(datagrams)
        response = self.select_response(responses)

        self.log.info(f"UPnP daemon location: {response.location}")
        return GatewayLocation(
            url=rewrite_location(response.location, host),
            advertised_url=response.location,
            probed_host=host,
            usn=response.usn,
            server=response.headers.get('SERVER', ''),
            responses_kept=len(responses),
        )

    def filter_responses(self, datagrams: Iterable[Datagram]) -> List[DiscoveryResponse]:
        """
        Drop unusable answers and keep the first answer per USN, in arrival order.

        Answers without a USN are keyed by their location.
        """
        seen = set()
        responses = []

        for data, sender in datagrams:
            try:
                response = parse_ssdp_response(data, sender)
            except SSDPParseError as e:
                self.log.warning(f"ssdp: unparsable datagram from {sender[0]} (discarding): {e}")
                continue

            if response.status != 200:
                self.log.warning(f"ssdp: got response status code {response.status} {response.reason!r} in search response")
                continue

            try:
                response.location = parse_location(response)
            except ValueError as e:
                self.log.warning(f"ssdp: no usable location in search response (discarding): {e}")
                continue

            if not response.usn:
                self.log.warning(f"ssdp: empty/missing USN in search response from {sender[0]} (using location instead)")

            key = response.dedup_key
            if key in seen:
                self.log.debug(f"ssdp: duplicate response for {key}")
                continue
            seen.add(key)
            responses.append(response)

        return responses

    def select_response(self, responses: List[DiscoveryResponse]) -> DiscoveryResponse:
        if not responses:
            raise NoDiscoveryResponse("No SSDP response available")
        if len(responses) > 1:
            self.log.debug(f"ssdp: {len(responses)} distinct responders, using the first")
        return responses[0]
