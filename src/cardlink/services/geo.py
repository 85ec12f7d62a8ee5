"""IP geolocation for view tracking."""

from abc import ABC, abstractmethod
from typing import NamedTuple, Optional

import geoip2.database
import geoip2.errors
from maxminddb import InvalidDatabaseError

from ..config import get_config
from ..utils.logging_config import get_logger

logger = get_logger("tracking")


class GeoLocation(NamedTuple):
    country: Optional[str]
    city: Optional[str]


UNKNOWN_LOCATION = GeoLocation(None, None)


class GeoResolver(ABC):
    """Resolves a public IP address to a coarse location."""

    @abstractmethod
    def lookup(self, ip: str) -> GeoLocation:
        """Return the location for ``ip``; never raises for unknown addresses."""
        pass


class NullGeoResolver(GeoResolver):
    """Used when no geolocation database is configured."""

    def lookup(self, ip: str) -> GeoLocation:
        return UNKNOWN_LOCATION


class MaxMindGeoResolver(GeoResolver):
    """Looks addresses up in a MaxMind GeoLite2/GeoIP2 City database."""

    def __init__(self, database_path: str):
        self._reader = geoip2.database.Reader(database_path)

    def lookup(self, ip: str) -> GeoLocation:
        try:
            response = self._reader.city(ip)
        except (geoip2.errors.AddressNotFoundError, ValueError):
            return UNKNOWN_LOCATION
        return GeoLocation(response.country.iso_code, response.city.name)

    def close(self) -> None:
        self._reader.close()


_geo_resolver: Optional[GeoResolver] = None


def get_geo_resolver() -> GeoResolver:
    """FastAPI dependency returning the configured geo resolver."""
    global _geo_resolver
    if _geo_resolver is None:
        database_path = get_config().tracking.geoip_database
        if database_path:
            try:
                _geo_resolver = MaxMindGeoResolver(database_path)
                logger.info(f"Geolocation enabled using {database_path}")
            except (OSError, InvalidDatabaseError) as e:
                logger.warning(f"Geolocation disabled, cannot open {database_path}: {e}")
                _geo_resolver = NullGeoResolver()
        else:
            _geo_resolver = NullGeoResolver()
    return _geo_resolver
