import pytest

from rentals.models.base.enums import (
    Availability,
    FuelPolicy,
    GearboxType,
    MileagePolicy,
    MultimediaTag,
    VehicleType,
)
from rentals.schemas.search import SearchCriteria
from rentals.services.search.catalog_filter import CatalogFilter


@pytest.fixture
def catalog_filter(session_factory):
    return CatalogFilter(session_factory)


@pytest.fixture
def seeded(catalog):
    catalog.supplier("supplier-1", minimum_rental_days=3)
    catalog.supplier("supplier-2")
    catalog.location("loc-a", 13.79, -88.89, name="Airport")
    catalog.location("loc-b", 13.70, -89.20, name="Downtown")
    catalog.vehicle("compact", locations=["loc-a"], gearbox=GearboxType.MANUAL, seats=5, doors=4,
                    multimedia=["bluetooth"], mileage=200)
    catalog.vehicle("van", supplier_id="supplier-2", locations=["loc-b"], gearbox=GearboxType.AUTOMATIC,
                    seats=8, doors=5, aircon=True, multimedia=["bluetooth", "touchscreen"],
                    vehicle_type=VehicleType.DIESEL, fuel_policy=FuelPolicy.FREE_TANK, deposit=500.0)
    catalog.vehicle("ev", supplier_id="supplier-2", locations=["loc-a", "loc-b"], vehicle_type=VehicleType.ELECTRIC,
                    seats=4, doors=5, rating=4.5)
    return catalog


def ids(candidates):
    return sorted(c.id for c in candidates)


def test_no_filters_returns_whole_catalog(catalog_filter, seeded):
    assert ids(catalog_filter.filter(SearchCriteria())) == ["compact", "ev", "van"]


@pytest.mark.parametrize("field", [
    "vehicle_types", "gearboxes", "mileage", "fuel_policies", "range_classes", "amenity_tags", "availability",
])
def test_empty_set_filter_matches_nothing(catalog_filter, seeded, field):
    assert catalog_filter.filter(SearchCriteria(**{field: frozenset()})) == []


def test_empty_supplier_set_matches_every_supplier(catalog_filter, seeded):
    assert len(catalog_filter.filter(SearchCriteria(supplier_ids=frozenset()))) == 3


def test_supplier_set(catalog_filter, seeded):
    assert ids(catalog_filter.filter(SearchCriteria(supplier_ids={"supplier-2"}))) == ["ev", "van"]


def test_conjunctive_facets(catalog_filter, seeded):
    criteria = SearchCriteria(gearboxes={GearboxType.AUTOMATIC}, aircon=True, doors_more_than_4=True)
    assert ids(catalog_filter.filter(criteria)) == ["van"]


def test_seat_count_six_means_more_than_five(catalog_filter, seeded):
    assert ids(catalog_filter.filter(SearchCriteria(seats_exact=6))) == ["van"]
    assert ids(catalog_filter.filter(SearchCriteria(seats_exact=4))) == ["ev"]


def test_mileage_policy(catalog_filter, seeded):
    limited = SearchCriteria(mileage={MileagePolicy.LIMITED})
    unlimited = SearchCriteria(mileage={MileagePolicy.UNLIMITED})
    both = SearchCriteria(mileage={MileagePolicy.LIMITED, MileagePolicy.UNLIMITED})

    assert ids(catalog_filter.filter(limited)) == ["compact"]
    assert ids(catalog_filter.filter(unlimited)) == ["ev", "van"]
    assert len(catalog_filter.filter(both)) == 3


def test_deposit_and_rating(catalog_filter, seeded):
    assert ids(catalog_filter.filter(SearchCriteria(deposit_ceiling=100))) == ["compact", "ev"]
    assert ids(catalog_filter.filter(SearchCriteria(rating_floor=4))) == ["ev"]


def test_amenities_require_every_tag(catalog_filter, seeded):
    criteria = SearchCriteria(amenity_tags={MultimediaTag.BLUETOOTH, MultimediaTag.TOUCHSCREEN})
    assert ids(catalog_filter.filter(criteria)) == ["van"]


def test_fully_booked_and_coming_soon_are_hidden_by_default(catalog_filter, catalog):
    catalog.supplier("supplier-1")
    catalog.vehicle("booked", fully_booked=True)
    catalog.vehicle("soon", coming_soon=True)
    catalog.vehicle("plain", fully_booked=False)

    assert ids(catalog_filter.filter(SearchCriteria())) == ["plain"]
    assert ids(catalog_filter.filter(SearchCriteria(include_fully_booked=True))) == ["booked", "plain"]
    assert ids(catalog_filter.filter(SearchCriteria(include_coming_soon=True))) == ["plain", "soon"]


def test_availability(catalog_filter, catalog):
    catalog.supplier("supplier-1")
    catalog.vehicle("on", available=True)
    catalog.vehicle("off", available=False)

    assert ids(catalog_filter.filter(SearchCriteria(availability={Availability.AVAILABLE}))) == ["on"]
    assert ids(catalog_filter.filter(SearchCriteria(availability={Availability.UNAVAILABLE}))) == ["off"]
    assert len(catalog_filter.filter(SearchCriteria())) == 2


def test_exact_location(catalog_filter, seeded):
    criteria = SearchCriteria(exact_location_only=True, location_id="loc-b")
    assert ids(catalog_filter.filter(criteria)) == ["ev", "van"]


def test_exact_location_without_location_id_matches_nothing(catalog_filter, seeded):
    criteria = SearchCriteria(exact_location_only=True)

    assert criteria.is_unsatisfiable
    assert catalog_filter.filter(criteria) == []
    assert catalog_filter.filter_suppliers(criteria) == []


def test_minimum_rental_days(catalog_filter, seeded):
    assert ids(catalog_filter.filter(SearchCriteria(min_rental_days=2))) == ["ev", "van"]
    assert len(catalog_filter.filter(SearchCriteria(min_rental_days=3))) == 3


def test_keyword_is_case_insensitive_and_literal(catalog_filter, seeded):
    assert ids(catalog_filter.filter(SearchCriteria(keyword="VA"))) == ["van"]
    assert catalog_filter.filter(SearchCriteria(keyword="%")) == []


def test_candidates_carry_location_coordinates(catalog_filter, seeded):
    (candidate,) = catalog_filter.filter(SearchCriteria(keyword="compact"))
    (location,) = candidate.locations

    assert location.location_id == "loc-a"
    assert location.name == "Airport"
    assert location.point.latitude == pytest.approx(13.79)
    assert candidate.entity.name == "compact"


def test_supplier_candidates(catalog_filter, seeded, catalog):
    catalog.supplier("supplier-3", address="Calle 1, San Salvador")
    catalog.vehicle("truck", supplier_id="supplier-3", seats=3)

    candidates = catalog_filter.filter_suppliers(SearchCriteria(seats_exact=3))

    assert ids(candidates) == ["supplier-3"]
    (location,) = candidates[0].locations
    assert location.geocode_text == "Calle 1, San Salvador"
    assert location.point is None
