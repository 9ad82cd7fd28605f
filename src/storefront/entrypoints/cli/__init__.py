"""Storefront command-line interface."""
