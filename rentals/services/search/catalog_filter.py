"""
Catalog filter.

Translates SearchCriteria into SQL predicates over the vehicle catalog and
returns the matching vehicles (or their suppliers) as ranking candidates.
Amenity containment is checked in Python because amenities are stored as
a JSON list.
"""

from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from rentals.config.logging import get_logger
from rentals.core.constants import SEATS_MORE_THAN_FIVE, UNLIMITED_MILEAGE
from rentals.models.base.enums import Availability, MileagePolicy
from rentals.models.location import Location
from rentals.models.user import Supplier
from rentals.models.vehicle import Vehicle
from rentals.repositories.supplier_repository import SupplierRepository
from rentals.repositories.vehicle_repository import VehicleRepository
from rentals.schemas.catalog import SupplierSummary, VehicleSummary
from rentals.schemas.search import SearchCriteria
from rentals.services.common.unit_of_work import SessionFactory, UnitOfWork
from rentals.services.search.candidates import Candidate, CandidateLocation
from rentals.utils.geo_utils import GeoPoint

logger = get_logger(__name__)


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _flag_excluded(column) -> ColumnElement:
    """Rows where a tri-state flag is unset or false."""
    return or_(column.is_(None), column.is_(False))


class CatalogFilter:

    def __init__(self, session_factory: SessionFactory, language: str = "en"):
        self.session_factory = session_factory
        self.language = language

    def build_conditions(self, criteria: SearchCriteria) -> Tuple[List[ColumnElement], bool]:
        """
        SQL predicates for ``criteria`` and whether they need the supplier join.

        Must not be called with unsatisfiable criteria.
        """
        conditions: List[ColumnElement] = []
        join_supplier = False

        if criteria.supplier_ids:
            conditions.append(Vehicle.supplier_id.in_(sorted(criteria.supplier_ids)))
        if criteria.vehicle_types is not None:
            conditions.append(Vehicle.vehicle_type.in_(sorted(criteria.vehicle_types)))
        if criteria.gearboxes is not None:
            conditions.append(Vehicle.gearbox.in_(sorted(criteria.gearboxes)))
        if criteria.fuel_policies is not None:
            conditions.append(Vehicle.fuel_policy.in_(sorted(criteria.fuel_policies)))
        if criteria.range_classes is not None:
            conditions.append(Vehicle.range_class.in_(sorted(criteria.range_classes)))

        if criteria.mileage is not None and len(criteria.mileage) == 1:
            if MileagePolicy.UNLIMITED in criteria.mileage:
                conditions.append(Vehicle.mileage == UNLIMITED_MILEAGE)
            else:
                conditions.append(Vehicle.mileage != UNLIMITED_MILEAGE)

        if criteria.availability is not None and len(criteria.availability) == 1:
            wanted = Availability.AVAILABLE in criteria.availability
            conditions.append(Vehicle.available.is_(wanted))

        if criteria.deposit_ceiling is not None:
            conditions.append(Vehicle.deposit <= criteria.deposit_ceiling)
        if criteria.rating_floor is not None:
            conditions.append(Vehicle.rating >= criteria.rating_floor)

        if criteria.aircon:
            conditions.append(Vehicle.aircon.is_(True))
        if criteria.doors_more_than_4:
            conditions.append(Vehicle.doors > 4)
        if criteria.seats_more_than_5:
            conditions.append(Vehicle.seats > 5)
        if criteria.seats_exact is not None:
            if criteria.seats_exact == SEATS_MORE_THAN_FIVE:
                conditions.append(Vehicle.seats > 5)
            else:
                conditions.append(Vehicle.seats == criteria.seats_exact)

        if not criteria.include_fully_booked:
            conditions.append(_flag_excluded(Vehicle.fully_booked))
        if not criteria.include_coming_soon:
            conditions.append(_flag_excluded(Vehicle.coming_soon))

        if criteria.exact_location_only:
            conditions.append(Vehicle.locations.any(Location.id == criteria.location_id))

        if criteria.min_rental_days is not None:
            join_supplier = True
            conditions.append(
                or_(
                    Supplier.minimum_rental_days.is_(None),
                    Supplier.minimum_rental_days <= criteria.min_rental_days,
                )
            )

        keyword = (criteria.keyword or "").strip()
        if keyword:
            conditions.append(Vehicle.name.ilike(f"%{escape_like(keyword)}%", escape="\\"))

        return conditions, join_supplier

    def _query_vehicles(self, uow: UnitOfWork, criteria: SearchCriteria) -> Optional[List[Vehicle]]:
        empty_filters = criteria.empty_set_filters()
        if empty_filters:
            logger.info("Empty set filter supplied, no vehicle can match", extra={"filters": empty_filters})
            return None
        if criteria.lacks_exact_location:
            logger.info("Exact-location search without a location id, no vehicle can match")
            return None

        conditions, join_supplier = self.build_conditions(criteria)
        vehicles = uow.get_repo(VehicleRepository).find_matching(conditions, join_supplier=join_supplier)

        if criteria.amenity_tags:
            wanted = {tag.value for tag in criteria.amenity_tags}
            vehicles = [v for v in vehicles if wanted <= set(v.multimedia or [])]
        return vehicles

    def filter(self, criteria: SearchCriteria) -> List[Candidate]:
        """Vehicles matching every facet in ``criteria``, as ranking candidates."""
        with UnitOfWork(self.session_factory) as uow:
            vehicles = self._query_vehicles(uow, criteria)
            if not vehicles:
                return []

            candidates = [self._vehicle_candidate(v) for v in vehicles]

        logger.debug("Catalog filter matched vehicles", extra={"count": len(candidates)})
        return candidates

    def filter_suppliers(self, criteria: SearchCriteria) -> List[Candidate]:
        """Suppliers owning at least one vehicle that matches ``criteria``."""
        with UnitOfWork(self.session_factory) as uow:
            vehicles = self._query_vehicles(uow, criteria)
            if not vehicles:
                return []

            supplier_ids = {v.supplier_id for v in vehicles}
            suppliers = uow.get_repo(SupplierRepository).find_by_ids(supplier_ids)
            return [self._supplier_candidate(s) for s in suppliers]

    def _vehicle_candidate(self, vehicle: Vehicle) -> Candidate:
        locations = tuple(
            CandidateLocation(
                location_id=location.id,
                name=location.display_name(self.language),
                point=GeoPoint(location.latitude, location.longitude) if location.has_coordinates else None,
            )
            for location in vehicle.locations
        )
        return Candidate(
            id=vehicle.id,
            updated_at=vehicle.updated_at,
            locations=locations,
            entity=VehicleSummary.from_model(vehicle, self.language),
        )

    @staticmethod
    def _supplier_candidate(supplier: Supplier) -> Candidate:
        address = (supplier.address or "").strip()
        locations = (CandidateLocation(name=address, geocode_text=address),) if address else ()
        return Candidate(
            id=supplier.id,
            updated_at=supplier.updated_at,
            locations=locations,
            entity=SupplierSummary.from_model(supplier),
        )
