"""
                        Services Module

Business logic sitting between the route handlers and the database.

Services:
    - auth: registration, login, bearer token verification
    - stores: restaurant aggregate and child entity repositories
"""

from rms.services.auth import AuthService
from rms.services.stores import (
    RestaurantStore,
    ChildStore,
    MenuStore,
    TableStore,
    BookingStore,
    OrderStore,
    FeedbackStore,
    IncomeStore,
)

__all__ = [
    "AuthService",
    "RestaurantStore",
    "ChildStore",
    "MenuStore",
    "TableStore",
    "BookingStore",
    "OrderStore",
    "FeedbackStore",
    "IncomeStore",
]
