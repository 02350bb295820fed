"""
Port mapping table enumeration with GetGenericPortMappingEntry
"""

import logging
from typing import AsyncIterator, Dict, Optional

from .models import (
    GET_GENERIC_PORT_MAPPING_ENTRY, UI2_MAX, GatewayConnection, PortMappingEntry,
    PortMappingRequest, PortMappingResult, ResultKind,
)
from .soap import ActionError, ActionFault

logger = logging.getLogger(__name__)


class PortMappingError(Exception):
    """Enumeration stopped on an error other than the end of the table"""

    def __init__(self, index: int, cause: Exception):
        self.index = index
        self.cause = cause
        super().__init__(f"Reading port mapping #{index} failed: {cause}")


async def get_entry_at_index(connection: GatewayConnection, index: int) -> PortMappingEntry:
    """
    Read one port mapping entry.

    Every failure, the end-of-table fault included, propagates as an
    ActionError. ValueError if index does not fit a ui2.
    """
    request = PortMappingRequest(index)
    reply = await connection.transport.perform_action(GET_GENERIC_PORT_MAPPING_ENTRY, request.to_arguments())
    return PortMappingEntry.from_reply(index, reply)


async def fetch_entry(connection: GatewayConnection, index: int) -> PortMappingResult:
    """Like get_entry_at_index, but tells the end of the table apart from other failures"""
    try:
        entry = await get_entry_at_index(connection, index)
    except ActionFault as e:
        kind = ResultKind.END_OF_TABLE if e.is_array_index_invalid else ResultKind.FAULT
        return PortMappingResult(index=index, kind=kind, error=e)
    except ActionError as e:
        return PortMappingResult(index=index, kind=ResultKind.FAULT, error=e)
    return PortMappingResult(index=index, kind=ResultKind.ENTRY, entry=entry)


class PortMappingEnumerator:
    """Walks a gateway's port mapping table from index 0"""

    def __init__(self, config: Optional[Dict] = None, log: Optional[logging.Logger] = None):
        config = config or {}
        self.max_entries = config.get('max_entries', 50)
        self.treat_faults_as_end_of_table = config.get('treat_faults_as_end_of_table', False)
        self.log = log or logger
        self.last_result: Optional[PortMappingResult] = None

    @property
    def index_limit(self) -> int:
        if self.max_entries is None:
            return UI2_MAX + 1
        return min(self.max_entries, UI2_MAX + 1)

    async def iter_entries(self, connection: GatewayConnection) -> AsyncIterator[PortMappingEntry]:
        """
        Yield entries 0, 1, 2 ... one request at a time.

        Ends on the end-of-table fault or after max_entries entries. Any other
        failure raises PortMappingError, unless treat_faults_as_end_of_table
        is set.
        """
        self.last_result = None
        for index in range(self.index_limit):
            result = await fetch_entry(connection, index)
            self.last_result = result

            if result.kind is ResultKind.ENTRY:
                yield result.entry
                continue

            if result.kind is ResultKind.END_OF_TABLE:
                self.log.debug(f"{connection}: end of port mapping table after {index} entries")
                return

            if self.treat_faults_as_end_of_table:
                self.log.warning(f"{connection}: stopping at #{index}: {result.error}")
                return
            raise PortMappingError(index, result.error)

        self.log.info(f"{connection}: stopped after {self.index_limit} entries")
