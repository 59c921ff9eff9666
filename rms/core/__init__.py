"""
Core module initialization.
Exports configuration, logging utilities and the error taxonomy.
"""

from rms.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from rms.core.exceptions import (
    RMSError,
    ConflictError,
    InvalidCredentialsError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    StoreError,
)

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "RMSError",
    "ConflictError",
    "InvalidCredentialsError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "StoreError",
]
