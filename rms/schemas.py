"""
Pydantic Schemas for Request/Response Validation

JSON bodies use camelCase field names (``tableNum``, ``userName``,
``restaurantId``); Python code uses snake_case. Every create route has its
own input schema, validated before any store call.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from rms.models import AccountType


class CamelModel(BaseModel):
    """Base schema reading/writing camelCase JSON."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# AUTH
# =============================================================================

class RegisterRequest(CamelModel):
    """Request schema for creating an account."""
    email: EmailStr = Field(..., examples=["owner@bistro.com"])
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=100, examples=["Bistro 21"])
    type: AccountType = Field(..., examples=["restaurant"])

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class MessageResponse(BaseModel):
    message: str


class UserPublic(CamelModel):
    """User projection safe to return to clients (no password hash)."""
    id: int
    email: str
    name: str
    type: AccountType
    restaurant_id: Optional[int] = None


class LoginResponse(BaseModel):
    token: str
    user: UserPublic


class TokenClaims(CamelModel):
    """Identity decoded from a bearer token."""
    id: int
    email: str
    type: AccountType
    restaurant_id: Optional[int] = None


# =============================================================================
# CHILD ENTITY REQUESTS
# =============================================================================

class MenuItemCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Margherita"])
    price: float = Field(..., ge=0, examples=[12.5])
    img: Optional[str] = Field(None, max_length=500)


class TableCreate(CamelModel):
    num: int = Field(..., ge=1, examples=[4])
    status: str = Field(default="available", min_length=1, max_length=30, examples=["available"])


class BookingCreate(CamelModel):
    """
    Table reservation. Times are the restaurant's local wall-clock times
    and are stored exactly as sent, so a UTC offset is refused.
    """
    table_num: int = Field(..., ge=1)
    start: datetime = Field(..., examples=["2025-06-01T19:00:00"])
    end: datetime = Field(..., examples=["2025-06-01T21:00:00"])
    user_name: str = Field(..., min_length=1, max_length=100)

    @field_validator("start", "end")
    @classmethod
    def reject_utc_offset(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            raise ValueError("must be a local time without a UTC offset")
        return v

    @model_validator(mode="after")
    def check_time_range(self) -> "BookingCreate":
        if self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class OrderItem(CamelModel):
    """Single line of an order. Extra keys are kept as sent."""
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1, max_length=100)
    quantity: Optional[int] = Field(None, ge=1, le=99)
    price: float = Field(..., ge=0)


class OrderCreate(CamelModel):
    user_name: str = Field(..., min_length=1, max_length=100)
    items: List[OrderItem] = Field(..., min_length=1)
    total: float = Field(..., ge=0)
    method: str = Field(..., min_length=1, max_length=50, examples=["cash", "card"])

    def to_record(self) -> Dict[str, Any]:
        """Column values, with each item holding only the keys the client sent."""
        record = self.model_dump(exclude={"items"})
        record["items"] = [
            {**item.model_dump(exclude_unset=True), **(item.model_extra or {})}
            for item in self.items
        ]
        return record


class FeedbackCreate(CamelModel):
    user_name: str = Field(..., min_length=1, max_length=100)
    text: str = Field(..., min_length=1, max_length=2000)
    food_rating: int = Field(..., ge=1, le=5)
    service_rating: int = Field(..., ge=1, le=5)


class IncomeCreate(CamelModel):
    amount: float = Field(..., gt=0)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ChildResponse(CamelModel):
    id: int
    restaurant_id: int
    created_at: Optional[datetime] = None


class MenuItemResponse(ChildResponse):
    name: str
    price: float
    img: Optional[str] = None


class TableResponse(ChildResponse):
    num: int
    status: str


class BookingResponse(ChildResponse):
    table_num: int
    start: datetime
    end: datetime
    user_name: str


class OrderResponse(ChildResponse):
    user_name: str
    items: List[Dict[str, Any]]
    total: float
    method: str


class FeedbackResponse(ChildResponse):
    user_name: str
    text: str
    food_rating: int
    service_rating: int


class IncomeResponse(ChildResponse):
    amount: float


class RestaurantSummary(CamelModel):
    """Restaurant as listed: menu and tables expanded."""
    id: int
    name: str
    email: str
    logo: Optional[str] = None
    created_at: Optional[datetime] = None
    menu: List[MenuItemResponse] = []
    tables: List[TableResponse] = []


class RestaurantDetail(RestaurantSummary):
    """Restaurant with every child list expanded."""
    bookings: List[BookingResponse] = []
    orders: List[OrderResponse] = []
    feedback: List[FeedbackResponse] = []
    incomes: List[IncomeResponse] = []


class ErrorResponse(BaseModel):
    """Standard error response."""
    message: str
    error: Optional[str] = None


class ValidationErrorDetail(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    message: str = "Validation failed"
    errors: List[ValidationErrorDetail]


class LivenessResponse(BaseModel):
    message: str
    timestamp: datetime
    port: int
    database: str
