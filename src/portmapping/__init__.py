"""
Port mapping module: gateway connections and mapping table enumeration
"""

from .enumerator import PortMappingEnumerator, PortMappingError, fetch_entry, get_entry_at_index
from .gateway import GatewayResolveError, GatewayResolver
from .models import GatewayConnection, PortMappingEntry, PortMappingRequest, PortMappingResult, ResultKind
from .soap import ActionError, ActionFault, ActionTransportError, UpnpServiceTransport

__all__ = [
    'PortMappingEnumerator', 'PortMappingError', 'fetch_entry', 'get_entry_at_index',
    'GatewayResolver', 'GatewayResolveError', 'GatewayConnection', 'PortMappingEntry',
    'PortMappingRequest', 'PortMappingResult', 'ResultKind', 'ActionError', 'ActionFault',
    'ActionTransportError', 'UpnpServiceTransport',
]
