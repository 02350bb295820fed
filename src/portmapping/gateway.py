"""
Gateway resolver: turns a device description location into connections to the
gateway's port mapping services
"""

import logging
from typing import List, Optional, Sequence

from async_upnp_client.client import UpnpDevice
from async_upnp_client.client_factory import UpnpFactory
from async_upnp_client.exceptions import UpnpError

from discovery.models import GatewayLocation
from .models import GatewayConnection, GET_GENERIC_PORT_MAPPING_ENTRY
from .soap import UpnpServiceTransport

logger = logging.getLogger(__name__)

WAN_IP_CONNECTION_1 = "urn:schemas-upnp-org:service:WANIPConnection:1"
WAN_IP_CONNECTION_2 = "urn:schemas-upnp-org:service:WANIPConnection:2"
WAN_PPP_CONNECTION_1 = "urn:schemas-upnp-org:service:WANPPPConnection:1"

WAN_CONNECTION_SERVICES = (WAN_IP_CONNECTION_1, WAN_IP_CONNECTION_2, WAN_PPP_CONNECTION_1)


class GatewayResolveError(Exception):
    """The device description could not be fetched or understood"""
    pass


def service_urn(name: str) -> str:
    """Expand 'WANIPConnection:1' to its full service type URN"""
    if name.startswith('urn:'):
        return name
    return f"urn:schemas-upnp-org:service:{name}"


class GatewayResolver:
    """Builds GatewayConnection handles from a gateway's device description"""

    def __init__(self, requester, service_types: Sequence[str] = WAN_CONNECTION_SERVICES,
                 non_strict: bool = True, factory: Optional[UpnpFactory] = None,
                 log: Optional[logging.Logger] = None):
        self.service_types = [service_urn(s) for s in service_types]
        self.factory = factory or UpnpFactory(requester, non_strict=non_strict)
        self.log = log or logger

    async def resolve(self, location: GatewayLocation) -> List[GatewayConnection]:
        """
        Fetch the description at location and return one connection per
        matching port mapping service, root device first.
        """
        url = str(location.url)
        try:
            device = await self.factory.async_create_device(url)
        except UpnpError as e:
            raise GatewayResolveError(f"Cannot load device description {url}: {e}") from e

        connections = self.connections_for(device)
        if not connections:
            self.log.warning(f"{device.friendly_name} at {url} has no port mapping service")
        return connections

    def connections_for(self, device: UpnpDevice) -> List[GatewayConnection]:
        connections = []
        for embedded in device.all_devices:
            for service in embedded.services.values():
                if service.service_type not in self.service_types:
                    continue
                if not service.has_action(GET_GENERIC_PORT_MAPPING_ENTRY):
                    self.log.debug(f"{service.service_id} lacks {GET_GENERIC_PORT_MAPPING_ENTRY}, skipping")
                    continue
                connections.append(GatewayConnection(
                    friendly_name=device.friendly_name,
                    service_type=service.service_type,
                    service_id=service.service_id,
                    control_url=service.control_url,
                    transport=UpnpServiceTransport(service),
                ))
        return connections
