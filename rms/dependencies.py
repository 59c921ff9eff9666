"""
FastAPI Dependencies

Access guard (bearer token → claims), the restaurant ownership check and
per-request store construction.
"""

from typing import Callable, Optional, Type

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from rms.core.exceptions import AuthorizationError
from rms.core.security import is_owner
from rms.database import get_db
from rms.schemas import TokenClaims
from rms.services.auth import AuthService
from rms.services.stores import (
    BookingStore,
    ChildStore,
    FeedbackStore,
    IncomeStore,
    MenuStore,
    OrderStore,
    RestaurantStore,
    TableStore,
)

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def extract_token(authorization: Optional[str]) -> Optional[str]:
    """
    Second space-separated part of the Authorization header, whatever the
    scheme word is. ``Token <jwt>`` therefore reaches verification and fails
    as an invalid token, while a bare scheme counts as no token at all.
    """
    if not authorization:
        return None
    parts = authorization.split(" ")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


async def get_current_claims(
    authorization: Optional[str] = Depends(authorization_header),
    auth: AuthService = Depends(get_auth_service),
) -> TokenClaims:
    """
    Access guard: 401 without a bearer token, 403 when it does not verify.
    """
    return auth.verify_token(extract_token(authorization))


async def require_restaurant_owner(
    restaurant_id: int,
    claims: TokenClaims = Depends(get_current_claims),
) -> TokenClaims:
    """Allow only the restaurant account that owns ``restaurant_id``."""
    if not is_owner(claims, restaurant_id):
        raise AuthorizationError()
    return claims


# =============================================================================
# STORES
# =============================================================================

def get_restaurant_store(db: AsyncSession = Depends(get_db)) -> RestaurantStore:
    return RestaurantStore(db)


def _child_store(store_class: Type[ChildStore]) -> Callable[[AsyncSession], ChildStore]:
    def provider(db: AsyncSession = Depends(get_db)) -> ChildStore:
        return store_class(db)

    provider.__name__ = f"get_{store_class.collection}_store"
    return provider


get_menu_store = _child_store(MenuStore)
get_table_store = _child_store(TableStore)
get_booking_store = _child_store(BookingStore)
get_order_store = _child_store(OrderStore)
get_feedback_store = _child_store(FeedbackStore)
get_income_store = _child_store(IncomeStore)
