"""
SQLAlchemy Database Models

Accounts, restaurants and the six kinds of records a restaurant owns:
- Menu items and tables (managed by the restaurant account)
- Bookings, orders and feedback (submitted by anyone)
- Income entries (private to the restaurant account)

A restaurant's child lists are relationships over the child tables'
``restaurant_id`` column, ordered by id, so they always reflect exactly
the rows that reference the restaurant.
"""

import enum

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from rms.database import Base


class AccountType(str, enum.Enum):
    """Kind of account a user registers."""
    USER = "user"
    RESTAURANT = "restaurant"


class User(Base):
    """
    Credential store entry.

    Only the bcrypt hash of the password is kept. Restaurant accounts point
    at the restaurant created alongside them.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    type = Column(Enum(AccountType), nullable=False, default=AccountType.USER)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    restaurant = relationship("Restaurant", back_populates="owners")

    def __repr__(self):
        return f"<User #{self.id} - {self.email} - {self.type.value}>"


class Restaurant(Base):
    """Restaurant aggregate root."""
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    logo = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # =========================================================================
    # CHILD COLLECTIONS (insertion order)
    # =========================================================================
    menu = relationship("MenuItem", back_populates="restaurant", order_by="MenuItem.id")
    tables = relationship("Table", back_populates="restaurant", order_by="Table.id")
    bookings = relationship("Booking", back_populates="restaurant", order_by="Booking.id")
    orders = relationship("Order", back_populates="restaurant", order_by="Order.id")
    feedback = relationship("Feedback", back_populates="restaurant", order_by="Feedback.id")
    incomes = relationship("Income", back_populates="restaurant", order_by="Income.id")

    owners = relationship("User", back_populates="restaurant")

    def __repr__(self):
        return f"<Restaurant #{self.id} - {self.name}>"


class MenuItem(Base):
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    price = Column(Float, nullable=False)
    img = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    restaurant = relationship("Restaurant", back_populates="menu")

    def __repr__(self):
        return f"<MenuItem #{self.id} - {self.name} - {self.price}>"


class Table(Base):
    __tablename__ = "restaurant_tables"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    num = Column(Integer, nullable=False)
    status = Column(String(30), nullable=False, default="available")

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    restaurant = relationship("Restaurant", back_populates="tables")

    def __repr__(self):
        return f"<Table #{self.id} - num {self.num} - {self.status}>"


class Booking(Base):
    """Table booking. Overlapping bookings are accepted."""
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    table_num = Column(Integer, nullable=False)
    # Local wall-clock times; offsets are refused at the API
    start = Column("start_time", DateTime, nullable=False)
    end = Column("end_time", DateTime, nullable=False)
    user_name = Column(String(100), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    restaurant = relationship("Restaurant", back_populates="bookings")

    def __repr__(self):
        return f"<Booking #{self.id} - table {self.table_num} - {self.user_name}>"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    user_name = Column(String(100), nullable=False)
    items = Column(JSON, nullable=False)  # list of {name, quantity, price}
    total = Column(Float, nullable=False)
    method = Column(String(50), nullable=False)  # cash, card, ...

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    restaurant = relationship("Restaurant", back_populates="orders")

    def __repr__(self):
        return f"<Order #{self.id} - {self.user_name} - {self.total}>"


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    user_name = Column(String(100), nullable=False)
    text = Column(Text, nullable=False)
    food_rating = Column(Integer, nullable=False)
    service_rating = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    restaurant = relationship("Restaurant", back_populates="feedback")

    def __repr__(self):
        return f"<Feedback #{self.id} - {self.user_name}>"


class Income(Base):
    __tablename__ = "incomes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    restaurant_id = Column(Integer, ForeignKey("restaurants.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    restaurant = relationship("Restaurant", back_populates="incomes")

    def __repr__(self):
        return f"<Income #{self.id} - {self.amount}>"
