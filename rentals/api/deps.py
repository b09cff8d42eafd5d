"""
FastAPI dependencies.

Services come from the container stored on the application at startup.
The caller's identity is read from headers set by the upstream
authentication layer.
"""

from typing import Optional

from fastapi import Depends, Header, Request

from rentals.core.exceptions import AuthorizationError, ValidationError
from rentals.models.base.enums import UserType
from rentals.services.common.actor import Actor
from rentals.services.container import ServiceContainer
from rentals.services.geo.geo_resolver import GeoResolver
from rentals.services.review.review_service import ReviewService
from rentals.services.search.search_service import SearchService


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_search_service(container: ServiceContainer = Depends(get_container)) -> SearchService:
    return container.search


def get_review_service(container: ServiceContainer = Depends(get_container)) -> ReviewService:
    return container.reviews


def get_geo_resolver(container: ServiceContainer = Depends(get_container)) -> GeoResolver:
    return container.geo_resolver


def get_optional_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Optional[Actor]:
    if not x_user_id:
        return None
    try:
        role = UserType(x_user_role.lower()) if x_user_role else UserType.RENTER
    except ValueError:
        raise ValidationError("Unknown user role", field_errors={"X-User-Role": [x_user_role]})
    return Actor(user_id=x_user_id, role=role)


def get_actor(actor: Optional[Actor] = Depends(get_optional_actor)) -> Actor:
    if actor is None:
        raise AuthorizationError("Authentication required")
    return actor
