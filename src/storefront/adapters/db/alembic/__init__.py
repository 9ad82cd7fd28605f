"""Alembic migration environment for the Storefront SQL schema."""
