"""Adapters: concrete implementations of the Storefront interfaces.

Stores (SQLAlchemy and in-memory), caches (in-memory and Redis), cache
metrics (Prometheus), transactions, ID generators and message producers.
"""
