"""Storefront aggregates."""

from .base import Aggregate
from .order import ALLOWED_TRANSITIONS, Order
from .product import Product
from .user import User

__all__ = ["Aggregate", "ALLOWED_TRANSITIONS", "Order", "Product", "User"]
