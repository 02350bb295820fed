"""
Discovery module for UPnP gateway discovery
"""

from .exceptions import DiscoveryError, NoDiscoveryResponse, SSDPTransportError
from .manager import GatewayDiscovery, rewrite_location
from .models import DiscoveryRequest, DiscoveryResponse, GatewayLocation
from .ssdp import UDPTransport

__all__ = [
    'GatewayDiscovery', 'rewrite_location', 'DiscoveryRequest', 'DiscoveryResponse',
    'GatewayLocation', 'UDPTransport', 'DiscoveryError', 'NoDiscoveryResponse', 'SSDPTransportError',
]
