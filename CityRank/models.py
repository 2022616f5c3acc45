"""
Value types shared by the storage, scoring and API layers.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class City:
    """A city record as stored in the ``cities`` table."""

    geoname_id: int
    city_name: str
    country_code: str
    state_code: Optional[str]
    state_name: Optional[str]
    latitude: float
    longitude: float
    population: Optional[int]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'City':
        population = row.get('population')
        return cls(
            geoname_id=int(row['geoname_id']),
            city_name=row['city_name'],
            country_code=row['country_code'],
            state_code=row.get('state_code'),
            state_name=row.get('state_name'),
            latitude=float(row['latitude']),
            longitude=float(row['longitude']),
            population=int(population) if population is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'geoname_id': self.geoname_id,
            'city_name': self.city_name,
            'country_code': self.country_code,
            'state_code': self.state_code,
            'state_name': self.state_name,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'population': self.population,
        }


@dataclass(frozen=True)
class Location:
    """A latitude/longitude pair in degrees."""

    lat: float
    lon: float

    def to_dict(self) -> Dict[str, float]:
        return {'lat': self.lat, 'lon': self.lon}


@dataclass(frozen=True)
class SearchFilters:
    """Exact-match narrowing applied to the candidate query."""

    country_code: Optional[str] = None
    state_code: Optional[str] = None

    @classmethod
    def build(cls, country_code: Optional[str] = None,
              state_code: Optional[str] = None) -> 'SearchFilters':
        """Normalize blank values to None and codes to upper case."""
        country_code = (country_code or '').strip().upper() or None
        state_code = (state_code or '').strip().upper() or None
        return cls(country_code=country_code, state_code=state_code)
