"""Entry points into Storefront."""
