# HTTP Helper for Gateway Connections
# Session configuration for device description fetches and SOAP control requests

import aiohttp
import logging

from async_upnp_client.aiohttp import AiohttpSessionRequester

logger = logging.getLogger(__name__)

def create_gateway_session(timeout_seconds: float = 5) -> aiohttp.ClientSession:
    """
    Create properly configured aiohttp session for a gateway (always plain HTTP)
    Requests are issued one at a time, so a single connection per host is enough
    """
    connector = aiohttp.TCPConnector(
        limit_per_host=1,           # Enumeration is strictly sequential
        ssl=False,                  # UPnP control points talk plain HTTP
        force_close=True,           # Many gateways mishandle keep-alive
        enable_cleanup_closed=True
    )

    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=timeout_seconds)
    )

def create_requester(session: aiohttp.ClientSession, timeout_seconds: float = 5) -> AiohttpSessionRequester:
    """Wrap a session for async_upnp_client"""
    logger.debug(f"Creating UPnP requester (timeout={timeout_seconds}s)")
    return AiohttpSessionRequester(session, timeout=timeout_seconds)
