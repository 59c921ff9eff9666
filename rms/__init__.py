"""
                Restaurant Management API

REST backend for restaurant management: accounts and bearer-token
authentication, plus per-restaurant menus, tables, bookings, orders,
feedback and income records.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
