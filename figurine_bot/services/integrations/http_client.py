"""
HTTP client helper with standardized timeout configuration.

Ensures all outbound HTTP calls have explicit timeouts so a slow chat gateway
or catalog API cannot hang a background job.
"""

import httpx


def get_httpx_timeout(total_seconds: float = 10.0) -> httpx.Timeout:
    """
    Timeout configuration for one class of outbound call.

    Args:
        total_seconds: Read timeout (presence 10s, text 20s, image 45s, catalog 25s)

    Returns:
        httpx.Timeout with connect/write/pool capped at 5s
    """
    # httpx.Timeout API: first arg is default timeout, then keyword args for specific timeouts
    return httpx.Timeout(
        total_seconds,
        connect=5.0,  # Time to establish connection
        read=total_seconds,  # Time to read response
        write=5.0,  # Time to write request
        pool=5.0,  # Time to get connection from pool
    )


def create_httpx_client(
    total_seconds: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Create an httpx.AsyncClient with standardized timeout configuration.

    Args:
        total_seconds: See get_httpx_timeout
        transport: Optional transport (tests pass httpx.MockTransport)
    """
    return httpx.AsyncClient(timeout=get_httpx_timeout(total_seconds), transport=transport)
