"""
Shared constants for the rental service.
"""

from rentals.config.settings import settings

# Pagination
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = settings.DEFAULT_PAGE_SIZE
MAX_PAGE_SIZE = settings.MAX_PAGE_SIZE

# Geography
EARTH_RADIUS_KM = 6371.0
DEFAULT_SEARCH_RADIUS_KM = settings.DEFAULT_SEARCH_RADIUS_KM

# Catalog facet sentinels
SEATS_MORE_THAN_FIVE = 6
UNLIMITED_MILEAGE = -1

# Ratings
MIN_REVIEW_RATING = 1
MAX_REVIEW_RATING = 5
