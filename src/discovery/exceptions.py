"""
Discovery errors
"""


class DiscoveryError(Exception):
    """Base class for anything that makes a discovery attempt fail"""
    pass


class SSDPTransportError(DiscoveryError):
    """The probe could not be sent or the responses could not be received"""
    pass


class NoDiscoveryResponse(DiscoveryError):
    """No usable SSDP response arrived within the search window"""
    pass
