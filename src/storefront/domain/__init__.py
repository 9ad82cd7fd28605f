"""Domain layer for Storefront.

Aggregates, value objects, domain events and domain errors. Nothing in this
package imports from any other Storefront layer.
"""
