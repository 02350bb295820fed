"""
Port Map Scanner - orchestrates discovery, gateway resolution and enumeration
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from discovery.manager import GatewayDiscovery
from discovery.models import GatewayLocation
from portmapping.enumerator import PortMappingEnumerator
from portmapping.gateway import GatewayResolver
from portmapping.models import GatewayConnection, PortMappingEntry, ResultKind
from http_helper import create_gateway_session, create_requester

logger = logging.getLogger(__name__)


@dataclass
class GatewayReport:
    """Port mappings read from one gateway connection"""
    connection: GatewayConnection
    entries: List[PortMappingEntry] = field(default_factory=list)
    exhausted: bool = False  # True when the device reported the end of its table


class PortMapScanner:
    """Discovers the gateway at the configured host and lists its port mappings"""

    def __init__(self, config: Dict, discovery: Optional[GatewayDiscovery] = None,
                 resolver_factory: Optional[Callable] = None, log: Optional[logging.Logger] = None):
        self.config = config
        self.log = log or logger
        self.discovery = discovery or GatewayDiscovery(config['discovery'], log=self.log)
        self.resolver_factory = resolver_factory or self._default_resolver
        self.enumerator = PortMappingEnumerator(config['enumeration'], log=self.log)

    def _default_resolver(self, requester) -> GatewayResolver:
        gateway = self.config['gateway']
        return GatewayResolver(
            requester,
            service_types=gateway['service_types'],
            non_strict=gateway['non_strict'],
            log=self.log,
        )

    async def run(self) -> List[GatewayReport]:
        """Run one scan; any failure propagates to the caller"""
        network = self.config['network']
        start_time = time.time()

        location = await self.discovery.discover(network['host'], network['port'])
        self.log.info(f"Gateway description: {location} (advertised {location.advertised_url})")

        timeout = self.config['http']['request_timeout']
        async with create_gateway_session(timeout) as session:
            resolver = self.resolver_factory(create_requester(session, timeout))
            reports = await self.scan_location(resolver, location)

        total = sum(len(report.entries) for report in reports)
        self.log.info(f"Scan complete: {len(reports)} gateway services, {total} port mappings in {time.time() - start_time:.1f}s")
        return reports

    async def scan_location(self, resolver, location: GatewayLocation) -> List[GatewayReport]:
        connections = await resolver.resolve(location)
        if not connections:
            self.log.warning(f"No port mapping services found at {location}")

        reports = []
        for connection in connections:
            reports.append(await self.scan_connection(connection))
        return reports

    async def scan_connection(self, connection: GatewayConnection) -> GatewayReport:
        self.log.info(f"{connection.friendly_name} :: {connection.service_id}")

        report = GatewayReport(connection)
        async for entry in self.enumerator.iter_entries(connection):
            self.log.info(str(entry))
            report.entries.append(entry)

        last = self.enumerator.last_result
        report.exhausted = last is not None and last.kind is ResultKind.END_OF_TABLE
        return report
