"""Public IP address discovery.

Follows the dependency injection pattern: the poll loop depends on the
``IpProvider`` protocol, and tests substitute their own provider or HTTP
client.
"""

import ipaddress
import logging
from typing import Protocol

import httpx

from ipwatch.errors import IpFetchError

logger = logging.getLogger(__name__)

DEFAULT_IP_SERVICE_URL = "https://ifconfig.me/ip"


class IpProvider(Protocol):
    """Protocol for public IP discovery."""

    def fetch_public_ip(self) -> str:
        """Get the externally visible IP address.

        Returns:
            IP address as text.

        Raises:
            IpFetchError: If the address cannot be determined.
        """
        ...


class HttpIpProvider:
    """Asks an HTTP echo service for the caller's public IP.

    The service must answer with the bare address as plain text, like
    ``https://ifconfig.me/ip`` or ``https://api.ipify.org``.

    Example:
        provider = HttpIpProvider()
        ip = provider.fetch_public_ip()  # "203.0.113.50"
    """

    def __init__(
        self,
        url: str = DEFAULT_IP_SERVICE_URL,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize provider.

        Args:
            url: Plain-text IP echo endpoint.
            timeout: Request timeout in seconds.
            http_client: Optional httpx client (for DI). A client is created
                per request when omitted.
        """
        self.url = url
        self.timeout = timeout
        self.http_client = http_client

    def fetch_public_ip(self) -> str:
        """Fetch and validate the public IP.

        Raises:
            IpFetchError: On transport failure, an HTTP error status, or a
                response body that is not an IP address.
        """
        try:
            if self.http_client is not None:
                response = self.http_client.get(self.url, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.get(self.url)
        except httpx.HTTPError as e:
            raise IpFetchError(f"Failed to reach {self.url}: {e}") from e

        if response.status_code >= 400:
            raise IpFetchError(f"{self.url} returned {response.status_code}")

        text = response.text.strip()
        try:
            ip = ipaddress.ip_address(text)
        except ValueError as e:
            raise IpFetchError(f"{self.url} returned an invalid IP address: {text[:64]!r}") from e

        logger.debug(f"Public IP from {self.url}: {ip}")
        return str(ip)
