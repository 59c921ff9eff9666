"""
Restaurant and Child Entity Stores

Repository classes wrapping one ``AsyncSession``:

    RestaurantStore     list / fetch restaurants with their child lists
    ChildStore          create + list for one child collection
        MenuStore, TableStore, BookingStore,
        OrderStore, FeedbackStore, IncomeStore

Creating a child is one unit of work: the restaurant is looked up, the
child is linked to it and a single commit persists both. SQLAlchemy
failures are rolled back, logged and re-raised as ``StoreError``.
"""

import logging
from typing import Any, Generic, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from rms.core.exceptions import NotFoundError, StoreError
from rms.database import Base
from rms.models import Booking, Feedback, Income, MenuItem, Order, Restaurant, Table

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

SUMMARY_COLLECTIONS = ("menu", "tables")
ALL_COLLECTIONS = ("menu", "tables", "bookings", "orders", "feedback", "incomes")


class RestaurantStore:
    """Restaurant aggregate access."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_all(self) -> Sequence[Restaurant]:
        """All restaurants with menu and tables loaded."""
        query = (
            select(Restaurant)
            .options(*(selectinload(getattr(Restaurant, name)) for name in SUMMARY_COLLECTIONS))
            .order_by(Restaurant.id)
        )
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as e:
            raise await _store_failure(self.session, "listing restaurants", e)
        return result.scalars().all()

    async def get_by_id(self, restaurant_id: int) -> Restaurant:
        """
        One restaurant with all six child lists loaded.

        Raises:
            NotFoundError: If the restaurant does not exist
        """
        query = (
            select(Restaurant)
            .options(*(selectinload(getattr(Restaurant, name)) for name in ALL_COLLECTIONS))
            .where(Restaurant.id == restaurant_id)
        )
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as e:
            raise await _store_failure(self.session, f"loading restaurant #{restaurant_id}", e)

        restaurant = result.scalar_one_or_none()
        if restaurant is None:
            raise NotFoundError()
        return restaurant

    async def get_reference(self, restaurant_id: int) -> Restaurant:
        """Existence check without loading any child list."""
        try:
            restaurant = await self.session.get(Restaurant, restaurant_id)
        except SQLAlchemyError as e:
            raise await _store_failure(self.session, f"loading restaurant #{restaurant_id}", e)
        if restaurant is None:
            raise NotFoundError()
        return restaurant

    def append_child_reference(self, restaurant: Restaurant, collection: str, child: Base) -> None:
        """
        Link ``child`` to ``restaurant``'s ``collection`` in the current unit of work.

        The collection itself is not loaded; it is rebuilt from the child
        rows whenever the restaurant is read.
        """
        if collection not in ALL_COLLECTIONS:
            raise ValueError(f"Unknown restaurant collection: {collection}")
        child.restaurant_id = restaurant.id


class ChildStore(Generic[ModelT]):
    """
    Create/list operations for one kind of restaurant-owned record.

    Subclasses set ``model`` and ``collection`` (the Restaurant attribute
    listing these records).
    """

    model: Type[ModelT]
    collection: str

    def __init__(self, session: AsyncSession):
        self.session = session
        self.restaurants = RestaurantStore(session)

    @property
    def label(self) -> str:
        return self.model.__name__

    async def create(self, restaurant_id: int, fields: dict[str, Any]) -> ModelT:
        """
        Persist a record scoped to ``restaurant_id`` and return it with its id.

        Raises:
            NotFoundError: If the restaurant does not exist
            StoreError: If the database write fails
        """
        restaurant = await self.restaurants.get_reference(restaurant_id)
        record = self.model(**fields)
        self.restaurants.append_child_reference(restaurant, self.collection, record)
        self.session.add(record)

        try:
            await self.session.commit()
            await self.session.refresh(record)
        except SQLAlchemyError as e:
            raise await _store_failure(self.session, f"creating {self.label}", e)

        logger.info(f"{self.label} #{record.id} created for restaurant #{restaurant_id}")
        return record

    async def list_by_restaurant(self, restaurant_id: int) -> Sequence[ModelT]:
        """Records referencing ``restaurant_id`` in insertion order."""
        query = (
            select(self.model)
            .where(self.model.restaurant_id == restaurant_id)
            .order_by(self.model.id)
        )
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as e:
            raise await _store_failure(self.session, f"listing {self.collection}", e)
        return result.scalars().all()


class MenuStore(ChildStore[MenuItem]):
    model = MenuItem
    collection = "menu"


class TableStore(ChildStore[Table]):
    model = Table
    collection = "tables"


class BookingStore(ChildStore[Booking]):
    model = Booking
    collection = "bookings"

    async def find_overlapping(self, restaurant_id: int, table_num: int, start, end) -> Sequence[Booking]:
        """Existing bookings of the same table whose time range intersects [start, end)."""
        query = (
            select(Booking)
            .where(
                Booking.restaurant_id == restaurant_id,
                Booking.table_num == table_num,
                Booking.start < end,
                Booking.end > start,
            )
            .order_by(Booking.id)
        )
        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as e:
            raise await _store_failure(self.session, "checking booking overlap", e)
        return result.scalars().all()

    async def create(self, restaurant_id: int, fields: dict[str, Any]) -> Booking:
        # Double bookings are accepted; they are only reported.
        overlapping = await self.find_overlapping(
            restaurant_id, fields["table_num"], fields["start"], fields["end"]
        )
        booking = await super().create(restaurant_id, fields)
        if overlapping:
            logger.warning(
                f"Booking #{booking.id} overlaps booking(s) "
                f"{[b.id for b in overlapping]} on table {booking.table_num} "
                f"of restaurant #{restaurant_id}"
            )
        return booking


class OrderStore(ChildStore[Order]):
    model = Order
    collection = "orders"


class FeedbackStore(ChildStore[Feedback]):
    model = Feedback
    collection = "feedback"


class IncomeStore(ChildStore[Income]):
    model = Income
    collection = "incomes"


async def _store_failure(session: AsyncSession, action: str, error: SQLAlchemyError) -> StoreError:
    """Roll back, log and convert a persistence failure."""
    await session.rollback()
    logger.exception(f"Database error while {action}: {error}")
    return StoreError(str(error))
