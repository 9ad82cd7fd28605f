"""Storefront: a transactional domain-service core for a small e-commerce backend."""

__all__ = ["__version__"]

__version__ = "0.1.0"
