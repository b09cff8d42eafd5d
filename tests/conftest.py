import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rentals.core.cache import InMemoryBackend
from rentals.core.concurrency import KeyedLock
from rentals.core.exceptions import GeocodingServiceError
from rentals.db.init_db import drop_db, init_db
from rentals.models.base.enums import FuelPolicy, GearboxType, RangeClass, ReviewStatus, UserType, VehicleType
from rentals.models.booking import Booking
from rentals.models.location import Location
from rentals.models.review import Review
from rentals.models.user import Admin, Supplier, User
from rentals.models.vehicle import Vehicle
from rentals.services.geo.geo_resolver import GeoResolver
from rentals.services.geo.geocode_cache import GeocodeCache
from rentals.services.review.rating_aggregator import RatingAggregator
from rentals.services.review.review_service import ReviewService
from rentals.utils.geo_utils import Address, GeocodeResult, GeocodingProvider, GeoPoint

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeGeocoder(GeocodingProvider):
    """In-memory provider that records every call."""

    name = "fake"

    def __init__(self, places: Optional[Dict[str, GeoPoint]] = None, delay: float = 0.0, fail: bool = False):
        self.places = places or {}
        self.delay = delay
        self.fail = fail
        self.calls = []
        self._lock = threading.Lock()

    def geocode(self, text, language="en"):
        with self._lock:
            self.calls.append(text)
        if self.delay:
            time.sleep(self.delay)
        if self.fail:
            raise GeocodingServiceError("provider down", provider=self.name)
        point = self.places.get(text)
        if point is None:
            return None
        return GeocodeResult(point=point, address=Address(formatted_address=text), place_id=f"fake:{text}")

    def reverse(self, point, language="en"):
        with self._lock:
            self.calls.append(point)
        if self.fail:
            raise GeocodingServiceError("provider down", provider=self.name)
        for text, known in self.places.items():
            if known == point:
                return Address(city=text, formatted_address=text)
        return None


class Catalog:
    """Seeds catalog rows, one committed session per call."""

    def __init__(self, session_factory):
        self.session_factory = session_factory
        self._tick = 0

    def _add(self, obj):
        with self.session_factory() as session:
            session.add(obj)
            session.commit()
        return obj

    def next_time(self) -> datetime:
        self._tick += 1
        return BASE_TIME + timedelta(minutes=self._tick)

    def renter(self, id="renter-1", **kwargs) -> User:
        return self._add(User(id=id, full_name=kwargs.pop("full_name", id), user_type=UserType.RENTER, **kwargs))

    def admin(self, id="admin-1") -> Admin:
        return self._add(Admin(id=id, full_name=id))

    def supplier(self, id="supplier-1", **kwargs) -> Supplier:
        kwargs.setdefault("full_name", id)
        kwargs.setdefault("updated_at", self.next_time())
        return self._add(Supplier(id=id, **kwargs))

    def location(self, id, latitude=None, longitude=None, name=None) -> Location:
        return self._add(Location(id=id, names={"en": name or id}, latitude=latitude, longitude=longitude))

    def vehicle(self, id, supplier_id="supplier-1", locations=(), **kwargs) -> Vehicle:
        values = dict(
            name=id,
            image=f"{id}.jpg",
            vehicle_type=VehicleType.GASOLINE,
            gearbox=GearboxType.MANUAL,
            fuel_policy=FuelPolicy.FULL_TO_FULL,
            range_class=RangeClass.MIDI,
            multimedia=[],
            mileage=-1,
            deposit=100.0,
            daily_price=40.0,
            seats=5,
            doors=4,
            aircon=False,
            available=True,
            updated_at=self.next_time(),
        )
        values.update(kwargs)
        with self.session_factory() as session:
            vehicle = Vehicle(id=id, supplier_id=supplier_id, **values)
            vehicle.locations = [session.get(Location, location_id) for location_id in locations]
            session.add(vehicle)
            session.commit()
        return vehicle

    def booking(self, id, renter_id="renter-1", vehicle_id="car-1", supplier_id="supplier-1") -> Booking:
        return self._add(Booking(id=id, renter_id=renter_id, vehicle_id=vehicle_id, supplier_id=supplier_id))

    def review(self, booking_id, rating, status=ReviewStatus.APPROVED, vehicle_id="car-1",
               supplier_id="supplier-1", reviewer_id="renter-1") -> Review:
        self.booking(booking_id, renter_id=reviewer_id, vehicle_id=vehicle_id, supplier_id=supplier_id)
        return self._add(
            Review(
                booking_id=booking_id,
                reviewer_id=reviewer_id,
                vehicle_id=vehicle_id,
                supplier_id=supplier_id,
                rating=rating,
                status=status,
            )
        )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    drop_db(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def catalog(session_factory):
    return Catalog(session_factory)


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def geocode_cache():
    return GeocodeCache(InMemoryBackend(max_entries=100))


@pytest.fixture
def resolver(session_factory, geocoder, geocode_cache):
    return GeoResolver(session_factory, geocoder, geocode_cache, persist_locations=False)


@pytest.fixture
def aggregator(session_factory):
    return RatingAggregator(session_factory, KeyedLock(), max_retries=3)


@pytest.fixture
def review_service(session_factory, aggregator):
    return ReviewService(session_factory, aggregator)
