"""
FastAPI Application Entry Point

Restaurant Management API.

Endpoints:
    - GET  /api/test: Liveness information
    - POST /api/auth/register, /api/auth/login: Accounts and tokens
    - GET  /api/restaurants[/{id}]: Restaurants with expanded child lists
    - POST/GET /api/restaurants/{id}/menu|tables|bookings|orders|feedback|incomes

Menu, table and income writes (and income reads) require the bearer token
of the restaurant's own account.

Run with: rms-api, or uvicorn rms.main:create_app --factory

Version: 1.0.0
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from rms.core.config import Settings, get_settings, setup_logging
from rms.core.exceptions import RMSError
from rms.database import Database, get_db
from rms.dependencies import (
    get_auth_service,
    get_booking_store,
    get_feedback_store,
    get_income_store,
    get_menu_store,
    get_order_store,
    get_restaurant_store,
    get_table_store,
    require_restaurant_owner,
)
from rms.schemas import (
    BookingCreate,
    BookingResponse,
    ErrorResponse,
    FeedbackCreate,
    FeedbackResponse,
    IncomeCreate,
    IncomeResponse,
    LivenessResponse,
    LoginRequest,
    LoginResponse,
    MenuItemCreate,
    MenuItemResponse,
    MessageResponse,
    OrderCreate,
    OrderResponse,
    RegisterRequest,
    RestaurantDetail,
    RestaurantSummary,
    TableCreate,
    TableResponse,
    TokenClaims,
    UserPublic,
    ValidationErrorResponse,
)
from rms.services.auth import AuthService
from rms.services.stores import (
    BookingStore,
    FeedbackStore,
    IncomeStore,
    MenuStore,
    OrderStore,
    RestaurantStore,
    TableStore,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

GUARDED_RESPONSES = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}
OPEN_RESPONSES = {
    400: {"model": ValidationErrorResponse},
    404: {"model": ErrorResponse},
}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    settings: Settings = app.state.settings
    database: Database = app.state.database

    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    missing = settings.validate_production_config()
    if missing:
        logger.error(f"❌ Missing production config: {missing}")
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")

    if settings.jwt_secret_is_ephemeral:
        logger.warning(
            "⚠️ JWT_SECRET not set, using a generated secret; "
            "tokens will not survive a restart"
        )

    await database.connect()
    await database.create_all()
    logger.info("✅ Database initialized")
    logger.info("✅ Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await database.disconnect()
    logger.info("✅ Cleanup complete")


# =============================================================================
# ERROR HANDLERS
# =============================================================================

async def rms_error_handler(request: Request, exc: RMSError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Field-level detail for malformed input, always as 400."""
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({
            "field": ".".join(location) or "body",
            "message": error.get("msg", "Invalid value"),
        })
    return JSONResponse(
        status_code=400,
        content={"message": "Validation failed", "errors": errors},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def make_global_exception_handler(settings: Settings):
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "message": "Internal Server Error",
                "error": str(exc) if settings.debug else "An unexpected error occurred",
            },
        )

    return global_exception_handler


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application around an explicit Settings object.

    The Database is constructed here but only connected by the lifespan
    handler, so importing this module never opens a connection.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        description="REST backend for restaurant accounts, menus, tables, bookings, orders, feedback and income.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.database = Database(settings.database_url, echo=settings.database_echo)
    app.state.auth_service = AuthService(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(RMSError, rms_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, make_global_exception_handler(settings))

    app.include_router(router)
    return app


# =============================================================================
# LIVENESS
# =============================================================================

@router.get(
    "/test",
    response_model=LivenessResponse,
    tags=["Health"],
    summary="Liveness Check",
)
async def liveness(request: Request) -> LivenessResponse:
    """Report that the server is up and whether the database answers."""
    settings: Settings = request.app.state.settings
    database: Database = request.app.state.database
    connected = await database.ping()

    return LivenessResponse(
        message="✅ Server is running correctly!",
        timestamp=datetime.now(timezone.utc),
        port=settings.api_port,
        database="connected" if connected else "disconnected",
    )


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@router.post(
    "/auth/register",
    response_model=MessageResponse,
    status_code=201,
    responses={400: {"model": ValidationErrorResponse}},
    tags=["Auth"],
    summary="Register Account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """
    Create a user account. Registering with ``type=restaurant`` also
    creates the restaurant owned by the account.
    """
    await auth.register(db, payload)
    return MessageResponse(message="User registered successfully")


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["Auth"],
    summary="Log In",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Exchange email and password for a 24 hour bearer token."""
    token, user = await auth.login(db, payload.email, payload.password)
    return LoginResponse(token=token, user=UserPublic.model_validate(user))


# =============================================================================
# RESTAURANT ENDPOINTS
# =============================================================================

@router.get(
    "/restaurants",
    response_model=List[RestaurantSummary],
    tags=["Restaurants"],
)
async def list_restaurants(
    store: RestaurantStore = Depends(get_restaurant_store),
) -> List[RestaurantSummary]:
    """All restaurants with their menu and tables."""
    restaurants = await store.list_all()
    return [RestaurantSummary.model_validate(r) for r in restaurants]


@router.get(
    "/restaurants/{restaurant_id}",
    response_model=RestaurantDetail,
    responses={404: {"model": ErrorResponse}},
    tags=["Restaurants"],
)
async def get_restaurant(
    restaurant_id: int,
    store: RestaurantStore = Depends(get_restaurant_store),
) -> RestaurantDetail:
    """One restaurant with every child list."""
    restaurant = await store.get_by_id(restaurant_id)
    return RestaurantDetail.model_validate(restaurant)


# =============================================================================
# MENU ENDPOINTS
# =============================================================================

@router.post(
    "/restaurants/{restaurant_id}/menu",
    response_model=MenuItemResponse,
    status_code=201,
    responses=GUARDED_RESPONSES,
    tags=["Menu"],
)
async def create_menu_item(
    restaurant_id: int,
    payload: MenuItemCreate,
    claims: TokenClaims = Depends(require_restaurant_owner),
    store: MenuStore = Depends(get_menu_store),
) -> MenuItemResponse:
    item = await store.create(restaurant_id, payload.model_dump())
    return MenuItemResponse.model_validate(item)


@router.get(
    "/restaurants/{restaurant_id}/menu",
    response_model=List[MenuItemResponse],
    tags=["Menu"],
)
async def list_menu(
    restaurant_id: int,
    store: MenuStore = Depends(get_menu_store),
) -> List[MenuItemResponse]:
    items = await store.list_by_restaurant(restaurant_id)
    return [MenuItemResponse.model_validate(i) for i in items]


# =============================================================================
# TABLE ENDPOINTS
# =============================================================================

@router.post(
    "/restaurants/{restaurant_id}/tables",
    response_model=TableResponse,
    status_code=201,
    responses=GUARDED_RESPONSES,
    tags=["Tables"],
)
async def create_table(
    restaurant_id: int,
    payload: TableCreate,
    claims: TokenClaims = Depends(require_restaurant_owner),
    store: TableStore = Depends(get_table_store),
) -> TableResponse:
    table = await store.create(restaurant_id, payload.model_dump())
    return TableResponse.model_validate(table)


@router.get(
    "/restaurants/{restaurant_id}/tables",
    response_model=List[TableResponse],
    tags=["Tables"],
)
async def list_tables(
    restaurant_id: int,
    store: TableStore = Depends(get_table_store),
) -> List[TableResponse]:
    tables = await store.list_by_restaurant(restaurant_id)
    return [TableResponse.model_validate(t) for t in tables]


# =============================================================================
# BOOKING ENDPOINTS
# =============================================================================

@router.post(
    "/restaurants/{restaurant_id}/bookings",
    response_model=BookingResponse,
    status_code=201,
    responses=OPEN_RESPONSES,
    tags=["Bookings"],
)
async def create_booking(
    restaurant_id: int,
    payload: BookingCreate,
    store: BookingStore = Depends(get_booking_store),
) -> BookingResponse:
    """Book a table. Overlapping bookings are accepted and logged."""
    booking = await store.create(restaurant_id, payload.model_dump())
    return BookingResponse.model_validate(booking)


@router.get(
    "/restaurants/{restaurant_id}/bookings",
    response_model=List[BookingResponse],
    tags=["Bookings"],
)
async def list_bookings(
    restaurant_id: int,
    store: BookingStore = Depends(get_booking_store),
) -> List[BookingResponse]:
    bookings = await store.list_by_restaurant(restaurant_id)
    return [BookingResponse.model_validate(b) for b in bookings]


# =============================================================================
# ORDER ENDPOINTS
# =============================================================================

@router.post(
    "/restaurants/{restaurant_id}/orders",
    response_model=OrderResponse,
    status_code=201,
    responses=OPEN_RESPONSES,
    tags=["Orders"],
)
async def create_order(
    restaurant_id: int,
    payload: OrderCreate,
    store: OrderStore = Depends(get_order_store),
) -> OrderResponse:
    order = await store.create(restaurant_id, payload.to_record())
    return OrderResponse.model_validate(order)


@router.get(
    "/restaurants/{restaurant_id}/orders",
    response_model=List[OrderResponse],
    tags=["Orders"],
)
async def list_orders(
    restaurant_id: int,
    store: OrderStore = Depends(get_order_store),
) -> List[OrderResponse]:
    orders = await store.list_by_restaurant(restaurant_id)
    return [OrderResponse.model_validate(o) for o in orders]


# =============================================================================
# FEEDBACK ENDPOINTS
# =============================================================================

@router.post(
    "/restaurants/{restaurant_id}/feedback",
    response_model=FeedbackResponse,
    status_code=201,
    responses=OPEN_RESPONSES,
    tags=["Feedback"],
)
async def create_feedback(
    restaurant_id: int,
    payload: FeedbackCreate,
    store: FeedbackStore = Depends(get_feedback_store),
) -> FeedbackResponse:
    feedback = await store.create(restaurant_id, payload.model_dump())
    return FeedbackResponse.model_validate(feedback)


@router.get(
    "/restaurants/{restaurant_id}/feedback",
    response_model=List[FeedbackResponse],
    tags=["Feedback"],
)
async def list_feedback(
    restaurant_id: int,
    store: FeedbackStore = Depends(get_feedback_store),
) -> List[FeedbackResponse]:
    entries = await store.list_by_restaurant(restaurant_id)
    return [FeedbackResponse.model_validate(f) for f in entries]


# =============================================================================
# INCOME ENDPOINTS
# =============================================================================

@router.post(
    "/restaurants/{restaurant_id}/incomes",
    response_model=IncomeResponse,
    status_code=201,
    responses=GUARDED_RESPONSES,
    tags=["Incomes"],
)
async def create_income(
    restaurant_id: int,
    payload: IncomeCreate,
    claims: TokenClaims = Depends(require_restaurant_owner),
    store: IncomeStore = Depends(get_income_store),
) -> IncomeResponse:
    income = await store.create(restaurant_id, payload.model_dump())
    return IncomeResponse.model_validate(income)


@router.get(
    "/restaurants/{restaurant_id}/incomes",
    response_model=List[IncomeResponse],
    responses=GUARDED_RESPONSES,
    tags=["Incomes"],
)
async def list_incomes(
    restaurant_id: int,
    claims: TokenClaims = Depends(require_restaurant_owner),
    store: IncomeStore = Depends(get_income_store),
) -> List[IncomeResponse]:
    incomes = await store.list_by_restaurant(restaurant_id)
    return [IncomeResponse.model_validate(i) for i in incomes]


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "rms.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )
