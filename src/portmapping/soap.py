"""
SOAP action transport for gateway services, on top of async_upnp_client
"""

import logging
from typing import Any, Mapping, Optional

from async_upnp_client.client import UpnpService
from async_upnp_client.exceptions import UpnpActionError, UpnpError

logger = logging.getLogger(__name__)

# UPnP error raised by GetGenericPortMappingEntry past the last entry
SPECIFIED_ARRAY_INDEX_INVALID = 713
SPECIFIED_ARRAY_INDEX_INVALID_DESC = "SpecifiedArrayIndexInvalid"


class ActionError(Exception):
    """A SOAP action did not return a result"""
    pass


class ActionFault(ActionError):
    """
    The device answered with a UPnP error.

    error_code and error_description are the errorCode/errorDescription of
    the UPnPError fault detail, None when the device left them out.
    """

    def __init__(self, action_name: str, error_code: Optional[int] = None,
                 error_description: Optional[str] = None):
        self.action_name = action_name
        self.error_code = _as_int(error_code)
        self.error_description = error_description
        super().__init__(f"{action_name} failed with UPnP error {self.error_code}: {error_description}")

    @property
    def is_array_index_invalid(self) -> bool:
        return (self.error_code == SPECIFIED_ARRAY_INDEX_INVALID
                or (self.error_description or '').strip() == SPECIFIED_ARRAY_INDEX_INVALID_DESC)


class ActionTransportError(ActionError):
    """The action could not be delivered or its answer could not be read"""
    pass


def _as_int(value) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


class UpnpServiceTransport:
    """Performs actions on one async_upnp_client service"""

    def __init__(self, service: UpnpService):
        self._service = service

    async def perform_action(self, action_name: str, arguments: Mapping[str, Any]) -> Mapping[str, Any]:
        """
        Call action_name with arguments and return the decoded out-arguments.

        Raises ActionFault for UPnP errors and ActionTransportError for
        everything else the client library reports.
        """
        if not self._service.has_action(action_name):
            raise ActionTransportError(f"{self._service.service_id} has no action {action_name}")

        action = self._service.action(action_name)
        logger.debug(f"SOAP {self._service.service_type}#{action_name} {dict(arguments)}")
        try:
            result = await action.async_call(**arguments)
        except UpnpActionError as e:
            raise ActionFault(action_name, e.error_code, e.error_desc) from e
        except UpnpError as e:
            raise ActionTransportError(f"{action_name} failed: {e}") from e

        logger.debug(f"SOAP {action_name} answer: {result!r}")
        return result
