"""
Geolocation utilities: points, great-circle distance and geocoding clients.
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

import requests

from rentals.config.logging import get_logger
from rentals.core.constants import EARTH_RADIUS_KM
from rentals.core.exceptions import GeocodingServiceError

logger = get_logger(__name__)


@dataclass(frozen=True)
class GeoPoint:
    """Geographic point with latitude and longitude"""
    latitude: float
    longitude: float

    def __post_init__(self):
        if not (-90 <= self.latitude <= 90):
            raise ValueError("Latitude must be between -90 and 90")
        if not (-180 <= self.longitude <= 180):
            raise ValueError("Longitude must be between -180 and 180")


@dataclass
class Address:
    """Structured address information"""
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    formatted_address: Optional[str] = None


@dataclass
class GeocodeResult:
    """Geocoding result with coordinate and address info"""
    point: GeoPoint
    address: Address
    place_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.point.latitude,
            "longitude": self.point.longitude,
            "address": asdict(self.address),
            "place_id": self.place_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeocodeResult":
        return cls(
            point=GeoPoint(data["latitude"], data["longitude"]),
            address=Address(**(data.get("address") or {})),
            place_id=data.get("place_id"),
        )


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in kilometres using the haversine formula."""
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2)
    # rounding can push h a hair past 1 for antipodal points
    c = 2 * math.asin(math.sqrt(min(1.0, h)))

    return c * EARTH_RADIUS_KM


class GeocodingProvider:
    """Geocoding provider interface"""

    name = "provider"

    def geocode(self, text: str, language: str = "en") -> Optional[GeocodeResult]:
        """Return the best match for ``text`` or None when nothing matches."""
        raise NotImplementedError

    def reverse(self, point: GeoPoint, language: str = "en") -> Optional[Address]:
        """Return the address at ``point`` or None when nothing matches."""
        raise NotImplementedError

    def _get(self, url: str, params: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Any:
        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"{self.name} request failed: {e}", extra={"url": url})
            raise GeocodingServiceError(f"{self.name} request failed: {e}", provider=self.name, endpoint=url) from e


class NominatimGeocoder(GeocodingProvider):
    """Geocode using OpenStreetMap Nominatim"""

    name = "nominatim"
    SEARCH_URL = "https://nominatim.openstreetmap.org/search"
    REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"

    def __init__(self, user_agent: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session or requests.Session()

    def geocode(self, text: str, language: str = "en") -> Optional[GeocodeResult]:
        params = {
            'q': text,
            'format': 'json',
            'limit': 1,
            'addressdetails': 1,
            'accept-language': language,
        }
        data = self._get(self.SEARCH_URL, params, headers={'User-Agent': self.user_agent})
        if not data:
            return None

        result = data[0]
        return GeocodeResult(
            point=GeoPoint(float(result['lat']), float(result['lon'])),
            address=self._address(result.get('address', {}), result.get('display_name')),
            place_id=str(result['place_id']) if result.get('place_id') is not None else None,
        )

    def reverse(self, point: GeoPoint, language: str = "en") -> Optional[Address]:
        params = {
            'lat': point.latitude,
            'lon': point.longitude,
            'format': 'json',
            'addressdetails': 1,
            'accept-language': language,
        }
        data = self._get(self.REVERSE_URL, params, headers={'User-Agent': self.user_agent})
        if not data or 'error' in data:
            return None
        return self._address(data.get('address', {}), data.get('display_name'))

    @staticmethod
    def _address(addr_data: Dict[str, Any], display_name: Optional[str]) -> Address:
        return Address(
            street=addr_data.get('road'),
            city=addr_data.get('city') or addr_data.get('town') or addr_data.get('village'),
            state=addr_data.get('state'),
            country=addr_data.get('country'),
            postal_code=addr_data.get('postcode'),
            formatted_address=display_name
        )


class GoogleGeocoder(GeocodingProvider):
    """Geocode using the Google Maps Geocoding API"""

    name = "google"
    GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

    def __init__(self, api_key: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        if not api_key:
            raise ValueError("GOOGLE_MAPS_API_KEY is required for the google geocoder")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def geocode(self, text: str, language: str = "en") -> Optional[GeocodeResult]:
        data = self._request({'address': text, 'language': language})
        if data is None:
            return None

        result = data['results'][0]
        location = result['geometry']['location']
        return GeocodeResult(
            point=GeoPoint(location['lat'], location['lng']),
            address=self._address(result),
            place_id=result.get('place_id'),
        )

    def reverse(self, point: GeoPoint, language: str = "en") -> Optional[Address]:
        data = self._request({'latlng': f"{point.latitude},{point.longitude}", 'language': language})
        if data is None:
            return None
        return self._address(data['results'][0])

    def _request(self, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        params = dict(params, key=self.api_key)
        data = self._get(self.GEOCODE_URL, params)
        status = data.get('status')
        if status == 'ZERO_RESULTS' or (status == 'OK' and not data.get('results')):
            return None
        if status != 'OK':
            raise GeocodingServiceError(
                f"Google geocoding returned {status}",
                provider=self.name,
                endpoint=self.GEOCODE_URL,
            )
        return data

    @staticmethod
    def _address(result: Dict[str, Any]) -> Address:
        components: List[Dict[str, Any]] = result.get('address_components', [])
        addr_data: Dict[str, str] = {}

        for component in components:
            types = component['types']
            if 'street_number' in types:
                addr_data['street_number'] = component['long_name']
            elif 'route' in types:
                addr_data['street'] = component['long_name']
            elif 'locality' in types:
                addr_data['city'] = component['long_name']
            elif 'administrative_area_level_1' in types:
                addr_data['state'] = component['long_name']
            elif 'country' in types:
                addr_data['country'] = component['long_name']
            elif 'postal_code' in types:
                addr_data['postal_code'] = component['long_name']

        street = addr_data.get('street', '')
        if addr_data.get('street_number'):
            street = f"{addr_data['street_number']} {street}".strip()

        return Address(
            street=street or None,
            city=addr_data.get('city'),
            state=addr_data.get('state'),
            country=addr_data.get('country'),
            postal_code=addr_data.get('postal_code'),
            formatted_address=result.get('formatted_address')
        )


def build_geocoder() -> GeocodingProvider:
    """Create the provider selected by GEOCODING_PROVIDER."""
    from rentals.config.settings import settings

    if settings.GEOCODING_PROVIDER == "google":
        return GoogleGeocoder(settings.GOOGLE_MAPS_API_KEY, timeout=settings.GEOCODING_TIMEOUT_SECONDS)
    return NominatimGeocoder(settings.GEOCODING_USER_AGENT, timeout=settings.GEOCODING_TIMEOUT_SECONDS)
