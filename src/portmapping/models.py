"""
Port mapping data structures and models
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional
from dataclasses import dataclass

GET_GENERIC_PORT_MAPPING_ENTRY = "GetGenericPortMappingEntry"
PORT_MAPPING_INDEX_ARG = "NewPortMappingIndex"

UI2_MAX = 0xFFFF


def marshal_ui2(value: int) -> int:
    """Check that value fits the UPnP ui2 type (unsigned 16 bit)"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"ui2 value must be an integer, got {value!r}")
    if not 0 <= value <= UI2_MAX:
        raise ValueError(f"ui2 value out of range: {value}")
    return value


@dataclass(frozen=True)
class PortMappingRequest:
    """Arguments of a GetGenericPortMappingEntry call"""
    index: int

    def __post_init__(self):
        marshal_ui2(self.index)

    def to_arguments(self) -> Dict[str, int]:
        return {PORT_MAPPING_INDEX_ARG: marshal_ui2(self.index)}


@dataclass(frozen=True)
class PortMappingEntry:
    """One row of a gateway's NAT port mapping table"""
    index: int
    remote_host: Any
    external_port: Any
    protocol: Any
    internal_port: Any
    internal_client: Any
    enabled: Any
    description: Any
    lease_duration: Any

    @classmethod
    def from_reply(cls, index: int, reply: Mapping[str, Any]) -> "PortMappingEntry":
        """Build an entry from the out-arguments of GetGenericPortMappingEntry"""
        return cls(
            index=index,
            remote_host=reply.get('NewRemoteHost'),
            external_port=reply.get('NewExternalPort'),
            protocol=reply.get('NewProtocol'),
            internal_port=reply.get('NewInternalPort'),
            internal_client=reply.get('NewInternalClient'),
            enabled=reply.get('NewEnabled'),
            description=reply.get('NewPortMappingDescription'),
            lease_duration=reply.get('NewLeaseDuration'),
        )

    def __str__(self) -> str:
        remote = self.remote_host or '*'
        state = 'enabled' if self.enabled else 'disabled'
        return (f"#{self.index} {self.protocol} {remote}:{self.external_port} -> "
                f"{self.internal_client}:{self.internal_port} "
                f"({state}, lease={self.lease_duration}, desc={self.description!r})")


class ResultKind(Enum):
    ENTRY = "entry"
    END_OF_TABLE = "end_of_table"
    FAULT = "fault"


@dataclass
class PortMappingResult:
    """Outcome of looking up a single mapping index"""
    index: int
    kind: ResultKind
    entry: Optional[PortMappingEntry] = None
    error: Optional[Exception] = None


@dataclass
class GatewayConnection:
    """A port mapping service on a discovered gateway"""
    friendly_name: str
    service_type: str
    service_id: str
    control_url: str
    transport: Any  # ActionTransport

    def __str__(self) -> str:
        return f"{self.friendly_name} :: {self.service_id}"
