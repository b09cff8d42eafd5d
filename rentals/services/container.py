"""
Service wiring.

Builds the shared, process-wide collaborators once: the geocode cache, the
geocoding thread pool, the per-entity rating locks and the services that
use them.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

from rentals.config.logging import get_logger
from rentals.config.settings import Settings, settings as default_settings
from rentals.core.cache import CacheBackend, build_cache_backend
from rentals.core.concurrency import KeyedLock
from rentals.services.common.unit_of_work import SessionFactory
from rentals.services.geo.geo_resolver import GeoResolver
from rentals.services.geo.geocode_cache import GeocodeCache
from rentals.services.review.rating_aggregator import RatingAggregator
from rentals.services.review.review_service import ReviewService
from rentals.services.search.catalog_filter import CatalogFilter
from rentals.services.search.proximity_ranker import ProximityRanker
from rentals.services.search.search_service import SearchService
from rentals.utils.geo_utils import GeocodingProvider, build_geocoder

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    geo_resolver: GeoResolver
    search: SearchService
    ratings: RatingAggregator
    reviews: ReviewService
    executor: ThreadPoolExecutor

    @classmethod
    def build(
        cls,
        session_factory: SessionFactory,
        geocoder: Optional[GeocodingProvider] = None,
        cache_backend: Optional[CacheBackend] = None,
        config: Settings = default_settings,
    ) -> "ServiceContainer":
        cache = GeocodeCache(cache_backend or build_cache_backend("geocode"))
        resolver = GeoResolver(
            session_factory,
            geocoder or build_geocoder(),
            cache,
            default_language=config.DEFAULT_LANGUAGE,
        )
        executor = ThreadPoolExecutor(
            max_workers=config.SEARCH_MAX_WORKERS,
            thread_name_prefix="geocode",
        )
        ranker = ProximityRanker(resolver, executor, geocode_timeout=config.SEARCH_GEOCODE_TIMEOUT_SECONDS)
        search = SearchService(CatalogFilter(session_factory, config.DEFAULT_LANGUAGE), ranker)
        ratings = RatingAggregator(session_factory, KeyedLock(), max_retries=config.RATING_RECOMPUTE_MAX_RETRIES)
        reviews = ReviewService(session_factory, ratings)

        logger.info(
            "Services initialised",
            extra={"max_workers": config.SEARCH_MAX_WORKERS, "cache_backend": type(cache.backend).__name__},
        )
        return cls(
            geo_resolver=resolver,
            search=search,
            ratings=ratings,
            reviews=reviews,
            executor=executor,
        )

    def shutdown(self) -> None:
        # geocoding calls still in flight finish in the background
        self.executor.shutdown(wait=False)
