"""
IP geolocation with a TTL cache and a fixed fallback location.

The resolver never raises: local addresses resolve to the default location,
and every upstream failure (network error, timeout, HTTP error, malformed
payload) degrades to the default location as well. Both outcomes are cached
so a flaky upstream is not retried within the cache window.
"""

import ipaddress
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from CityRank.cache import TTLCache
from CityRank.exceptions import GeolocationUnavailableError, MalformedUpstreamResponseError
from CityRank.models import Location
from CityRank.utils.logging import get_logger

logger = get_logger(__name__)

IPV6_MAPPED_PREFIX = '::ffff:'
DEFAULT_LOCATION = Location(lat=50.6333, lon=3.0667)  # Lille, France
DEFAULT_URL_TEMPLATE = 'http://ip-api.com/json/{ip}'
DEFAULT_TIMEOUT = 3.0
DEFAULT_CACHE_TTL = 24 * 60 * 60

SOURCE_CACHE = 'cache'
SOURCE_LOCAL = 'local'
SOURCE_UPSTREAM = 'upstream'
SOURCE_FALLBACK = 'fallback'


@dataclass(frozen=True)
class GeolocationResult:
    """A resolved location and how it was obtained."""

    location: Location
    source: str

    @property
    def is_fallback(self) -> bool:
        return self.source == SOURCE_FALLBACK


def normalize_ip(raw: Optional[str]) -> str:
    """
    Normalize a client address taken from ``X-Forwarded-For`` or the socket.

    Keeps the first comma-separated entry and removes the IPv6-mapped IPv4
    prefix.
    """
    if not raw:
        return ''
    ip = raw.split(',')[0].strip()
    if ip.lower().startswith(IPV6_MAPPED_PREFIX):
        ip = ip[len(IPV6_MAPPED_PREFIX):]
    return ip


def is_local_address(ip: str) -> bool:
    """True for loopback and private-range addresses."""
    if ip == '127.0.0.1' or ip.startswith('172.') or ip.startswith('192.168.'):
        return True
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return address.is_loopback or address.is_private


def _is_coordinate(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class GeolocationResolver:
    """
    Resolves client IP addresses to a :class:`Location`.

    Args:
        url_template: Upstream URL with an ``{ip}`` placeholder
        timeout: Seconds before an upstream request counts as failed
        default_location: Location used for local addresses and failures
        cache: Cache of resolved locations keyed by normalized IP
        session: ``requests`` session used for upstream calls
    """

    def __init__(self, url_template: str = DEFAULT_URL_TEMPLATE,
                 timeout: float = DEFAULT_TIMEOUT,
                 default_location: Location = DEFAULT_LOCATION,
                 cache: Optional[TTLCache] = None,
                 session: Optional[requests.Session] = None) -> None:
        self.url_template = url_template
        self.timeout = timeout
        self.default_location = default_location
        self.cache = cache if cache is not None else TTLCache(DEFAULT_CACHE_TTL, name='geolocation')
        self.session = session or requests.Session()

    def resolve(self, client_ip: Optional[str]) -> Location:
        """Resolve ``client_ip`` to a location; never raises."""
        return self.resolve_detailed(client_ip).location

    def resolve_detailed(self, client_ip: Optional[str]) -> GeolocationResult:
        ip = normalize_ip(client_ip)

        cached = self.cache.get(ip)
        if cached is not None:
            logger.debug(f"Using cached location for IP: {ip}")
            return GeolocationResult(cached, SOURCE_CACHE)

        if is_local_address(ip):
            logger.debug(f"Using default location for local IP: {ip}")
            self.cache.put(ip, self.default_location)
            return GeolocationResult(self.default_location, SOURCE_LOCAL)

        try:
            location = self._lookup(ip)
        except (GeolocationUnavailableError, MalformedUpstreamResponseError) as e:
            logger.warning(f"Geolocation failed for IP {ip}, using default location: {e.message}")
            self.cache.put(ip, self.default_location)
            return GeolocationResult(self.default_location, SOURCE_FALLBACK)

        logger.info(f"Location found for IP {ip}: {location.lat}, {location.lon}")
        self.cache.put(ip, location)
        return GeolocationResult(location, SOURCE_UPSTREAM)

    def _lookup(self, ip: str) -> Location:
        """
        Query the upstream service.

        Raises:
            GeolocationUnavailableError: On network errors, timeouts and HTTP errors
            MalformedUpstreamResponseError: When the payload lacks numeric coordinates
        """
        if not ip:
            raise MalformedUpstreamResponseError(message="No client address to resolve")

        url = self.url_template.format(ip=ip)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise GeolocationUnavailableError(
                message=f"Geolocation request failed: {e}",
                context={"ip": ip, "url": url},
                cause=e
            )

        try:
            payload: Dict[str, Any] = response.json()
        except ValueError as e:
            raise MalformedUpstreamResponseError(
                message=f"Geolocation response is not valid JSON: {e}",
                context={"ip": ip},
                cause=e
            )

        if not isinstance(payload, dict):
            raise MalformedUpstreamResponseError(
                message="Geolocation response is not a JSON object",
                context={"ip": ip}
            )

        lat, lon = payload.get('lat'), payload.get('lon')
        if not (_is_coordinate(lat) and _is_coordinate(lon)):
            raise MalformedUpstreamResponseError(
                message=f"No location data in response (status={payload.get('status')})",
                context={"ip": ip}
            )

        return Location(lat=float(lat), lon=float(lon))
