"""
SSDP wire handling: response parsing and the UDP request/collect transport
"""

import asyncio
import ipaddress
import logging
import socket
from typing import List, Tuple

from multidict import CIMultiDict
from yarl import URL

from .exceptions import SSDPTransportError
from .models import DiscoveryResponse

logger = logging.getLogger(__name__)

Datagram = Tuple[bytes, Tuple[str, int]]


class SSDPParseError(ValueError):
    """A datagram that is not an HTTP response"""
    pass


def parse_ssdp_response(data: bytes, sender: Tuple[str, int]) -> DiscoveryResponse:
    """
    Parse an HTTP-over-UDP response datagram.

    Only the status line and headers are read; SSDP responses carry no body.
    Raises SSDPParseError when the status line is not an HTTP status line.
    """
    text = data.decode('utf-8', errors='replace')
    lines = text.splitlines()
    if not lines:
        raise SSDPParseError("empty datagram")

    parts = lines[0].strip().split(None, 2)
    if len(parts) < 2 or not parts[0].upper().startswith('HTTP/'):
        raise SSDPParseError(f"not an HTTP response: {lines[0][:80]!r}")
    try:
        status = int(parts[1])
    except ValueError:
        raise SSDPParseError(f"bad status code: {parts[1]!r}")
    reason = parts[2] if len(parts) > 2 else ''

    headers = CIMultiDict()
    for line in lines[1:]:
        if not line.strip():
            break
        if ':' not in line:
            continue
        key, value = line.split(':', 1)
        headers.add(key.strip(), value.strip())

    return DiscoveryResponse(status=status, reason=reason, headers=headers, sender=sender)


def parse_location(response: DiscoveryResponse) -> URL:
    """Return the LOCATION header as an absolute URL or raise ValueError"""
    raw = response.headers.get('LOCATION', '').strip()
    if not raw:
        raise ValueError("missing LOCATION header")

    try:
        url = URL(raw)
        # Port parsing is lazy in yarl, force it so a bad port fails here
        url.explicit_port
    except (ValueError, TypeError) as e:
        raise ValueError(f"unparsable LOCATION {raw!r}: {e}") from e

    if not url.is_absolute() or not url.host:
        raise ValueError(f"LOCATION is not an absolute URL: {raw!r}")
    return url


class _SSDPCollector(asyncio.DatagramProtocol):
    """Accumulates every datagram received until the endpoint is closed"""

    def __init__(self):
        self.datagrams: List[Datagram] = []
        self.error = None

    def datagram_received(self, data: bytes, addr):
        self.datagrams.append((data, addr[:2]))

    def error_received(self, exc):
        logger.debug(f"SSDP socket error: {exc}")
        self.error = exc


class UDPTransport:
    """Sends a datagram a number of times and collects replies for a fixed window"""

    def __init__(self, multicast_ttl: int = 2):
        self.multicast_ttl = multicast_ttl

    async def request(self, message: bytes, address: Tuple[str, int],
                      timeout: float, num_sends: int) -> List[Datagram]:
        loop = asyncio.get_running_loop()
        host, port = address

        try:
            infos = await loop.getaddrinfo(host, port, family=socket.AF_INET, type=socket.SOCK_DGRAM)
        except (socket.gaierror, UnicodeError) as e:
            raise SSDPTransportError(f"Cannot resolve {host}:{port}: {e}") from e
        target = infos[0][4]

        try:
            transport, protocol = await loop.create_datagram_endpoint(
                _SSDPCollector, local_addr=('0.0.0.0', 0), family=socket.AF_INET
            )
        except OSError as e:
            raise SSDPTransportError(f"Cannot open SSDP socket: {e}") from e

        try:
            if ipaddress.IPv4Address(target[0]).is_multicast:
                sock = transport.get_extra_info('socket')
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, self.multicast_ttl)

            for _ in range(num_sends):
                transport.sendto(message, target)
            logger.debug(f"Sent {num_sends} M-SEARCH to {target[0]}:{target[1]}, waiting {timeout:.1f}s")

            await asyncio.sleep(timeout)
        finally:
            transport.close()

        if protocol.error is not None and not protocol.datagrams:
            raise SSDPTransportError(f"SSDP exchange with {host}:{port} failed: {protocol.error}") from protocol.error

        return list(protocol.datagrams)
