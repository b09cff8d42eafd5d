"""
Value types passed between the catalog filter and the proximity ranker.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Tuple

from rentals.utils.geo_utils import GeoPoint


@dataclass(frozen=True)
class CandidateLocation:
    """
    A place a candidate can be picked up from.

    ``point`` is set for stored coordinates; ``geocode_text`` marks a place
    that has to be geocoded first, such as a supplier's street address.
    """
    location_id: Optional[str] = None
    name: Optional[str] = None
    point: Optional[GeoPoint] = None
    geocode_text: Optional[str] = None


@dataclass(frozen=True)
class Candidate:
    id: str
    updated_at: datetime
    locations: Tuple[CandidateLocation, ...]
    entity: Any = field(compare=False)


@dataclass(frozen=True)
class SearchCandidate:
    candidate: Candidate
    distance_km: Optional[float] = None
    closest_location: Optional[CandidateLocation] = None


@dataclass
class RankedPage:
    items: List[SearchCandidate]
    page: int
    page_size: int
    total_count: int
    ranked_by_distance: bool

    @classmethod
    def empty(cls, page: int, page_size: int) -> "RankedPage":
        return cls(items=[], page=page, page_size=page_size, total_count=0, ranked_by_distance=False)
